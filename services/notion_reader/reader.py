"""Notion Reader - handles page search and block listing in Notion."""

import logging
from typing import Any, Dict, List, Optional

from notion_client import AsyncClient

from services.notion_reader.retry import retry_with_fixed_delay
from shared.models import RemoteDocument

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def _compact_id(value: Optional[str]) -> str:
    return (value or "").replace("-", "").lower()


class NotionReader:
    """Reads pages of a Notion database and the blocks beneath them."""

    def __init__(
        self,
        api_token: str,
        database_id: str,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        client: Optional[AsyncClient] = None
    ):
        """
        Initialize Notion Reader.

        Args:
            api_token: Notion API integration token
            database_id: Dashed ID of the database whose pages are synced
            max_retries: Retries after the first attempt of each remote call
            retry_delay: Fixed seconds between attempts
            client: Optional pre-built client (used by tests)
        """
        self.client = client or AsyncClient(auth=api_token)
        self.database_id = database_id
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @retry_with_fixed_delay()
    async def search_pages(self, start_cursor: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of search results, most recently edited first."""
        params: Dict[str, Any] = {
            "filter": {"property": "object", "value": "page"},
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
            "page_size": PAGE_SIZE,
        }
        if start_cursor:
            params["start_cursor"] = start_cursor
        return await self.client.search(**params)

    @retry_with_fixed_delay()
    async def list_block_children(
        self,
        block_id: str,
        start_cursor: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fetch one page of a block's children."""
        params: Dict[str, Any] = {"block_id": block_id, "page_size": PAGE_SIZE}
        if start_cursor:
            params["start_cursor"] = start_cursor
        return await self.client.blocks.children.list(**params)

    async def fetch_documents(self) -> List[RemoteDocument]:
        """
        Return every page that belongs to the configured database.

        The search endpoint is followed through ``next_cursor`` until
        ``has_more`` is false, then filtered by parent database.

        Raises:
            HTTPResponseError: If a search call still fails after retries
        """
        results: List[Dict[str, Any]] = []
        cursor = None

        while True:
            response = await self.search_pages(start_cursor=cursor)
            results.extend(response.get("results", []))
            cursor = response.get("next_cursor")
            if not response.get("has_more") or not cursor:
                break

        logger.info(f"Search returned {len(results)} pages (unfiltered)")

        documents = [
            RemoteDocument.from_dict(page)
            for page in results
            if self.belongs_to_database(page)
        ]

        logger.info(f"{len(documents)} pages belong to database {self.database_id}")
        return documents

    def belongs_to_database(self, page: Dict[str, Any]) -> bool:
        """Check whether a search result's parent is the configured database."""
        parent = page.get("parent") or {}
        if not parent.get("database_id"):
            return False
        return _compact_id(parent["database_id"]) == _compact_id(self.database_id)

    async def aclose(self) -> None:
        await self.client.aclose()
