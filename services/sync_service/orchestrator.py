"""Sync orchestration logic."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from services.notion_reader.converter import MarkdownConverter
from services.notion_reader.metadata import calculate_read_time, extract_metadata, extract_title
from services.notion_reader.reader import NotionReader
from services.sync_service.articles import ArticleStore, generate_article_id
from services.sync_service.images import ImageLocalizer
from services.sync_service.notifications import NotificationService
from services.sync_service.state import SyncStateStore
from shared.config import (
    get_blog_paths,
    get_image_timeout,
    get_notion_config,
    get_retry_config,
)
from shared.models import (
    DocumentSummary,
    LocalArticle,
    RemoteDocument,
    SyncPlan,
    SyncResult,
    SyncState,
)

logger = logging.getLogger(__name__)

NEW = "new"
UPDATED = "updated"
UNCHANGED = "unchanged"


class EmptyDocumentError(ValueError):
    """Raised when a page converts to an empty Markdown body."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncOrchestrator:
    """Orchestrates synchronization of Notion pages into blog Markdown files."""

    def __init__(
        self,
        reader: NotionReader,
        state_store: SyncStateStore,
        article_store: ArticleStore,
        image_localizer: ImageLocalizer,
        converter: Optional[MarkdownConverter] = None,
        notification_service: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        """
        Initialize the sync orchestrator.

        Args:
            reader: Notion reader for the configured database
            state_store: Persistence of the last sync time and page mapping
            article_store: Directory of Markdown articles
            image_localizer: Downloads images referenced by converted pages
            converter: Block tree converter; defaults to one over ``reader``
            notification_service: Sends critical error notifications
            clock: Source of the current time
        """
        self.reader = reader
        self.state_store = state_store
        self.article_store = article_store
        self.image_localizer = image_localizer
        self.converter = converter or MarkdownConverter(reader.list_block_children)
        self.notification_service = notification_service or NotificationService()
        self.clock = clock

    def classify(self, document: RemoteDocument, state: SyncState, full_sync: bool = False) -> str:
        """
        Decide whether a document is new, updated or unchanged.

        A mapped page whose article file has gone missing is treated as
        updated so the file is restored.
        """
        article_id = state.synced_pages.get(document.id)
        if not article_id:
            return NEW
        if full_sync or document.last_edited_time > state.last_sync_time:
            return UPDATED
        if not self.article_store.path_for(article_id).exists():
            return UPDATED
        return UNCHANGED

    async def execute_sync(self, full_sync: bool = False) -> SyncResult:
        """
        Execute the synchronization workflow.

        1. Loads the sync state
        2. Fetches the pages of the database (aborts the run on failure)
        3. Skips unchanged pages, converts and writes new and updated ones
        4. Removes articles whose pages no longer exist remotely
        5. Advances and saves the sync state if anything changed

        Args:
            full_sync: Reprocess every page regardless of the last sync time

        Returns:
            SyncResult with new/updated/skipped/deleted/total counts
        """
        started_at = self.clock()
        logger.info(f"Starting sync (full_sync={full_sync})")

        state = self.state_store.load()
        logger.info(
            f"Last sync time {state.last_sync_time.isoformat()}, "
            f"{len(state.synced_pages)} pages synced so far"
        )

        documents = await self._fetch_documents(full_sync)
        result = SyncResult(total=len(documents))
        earliest_failed_edit: Optional[datetime] = None

        for document in documents:
            status = self.classify(document, state, full_sync)

            if status == UNCHANGED:
                logger.debug(f"Skipping unchanged page {document.id}")
                result.skipped += 1
                continue

            try:
                await self._process_document(document, state)
            except Exception as e:
                logger.error(f"Failed to process page {document.id}: {e}", exc_info=True)
                result.skipped += 1
                result.errors.append(f"{document.id}: {e}")
                if status == UPDATED and document.last_edited_time > state.last_sync_time:
                    if earliest_failed_edit is None or document.last_edited_time < earliest_failed_edit:
                        earliest_failed_edit = document.last_edited_time
                continue

            if status == NEW:
                result.new += 1
            else:
                result.updated += 1

        result.deleted = self._reconcile_deletions(documents, state)

        if result.changed > 0:
            state.last_sync_time = self._next_cutoff(started_at, earliest_failed_edit)
            self.state_store.save(state)
        else:
            logger.info(
                f"Nothing changed, keeping last sync time {state.last_sync_time.isoformat()}"
            )

        logger.info(
            f"Sync completed: {result.new} new, {result.updated} updated, "
            f"{result.skipped} skipped, {result.deleted} deleted, {result.total} total"
        )
        return result

    async def check_updates(self) -> SyncPlan:
        """Classify the remote pages without converting or writing anything."""
        state = self.state_store.load()
        documents = await self._fetch_documents(full_sync=False)
        plan = SyncPlan()

        for document in documents:
            summary = DocumentSummary(
                id=document.id,
                title=extract_title(document.properties),
                last_edited_time=document.last_edited_time,
            )
            status = self.classify(document, state)
            if status == NEW:
                plan.new.append(summary)
            elif status == UPDATED:
                plan.updated.append(summary)
            else:
                plan.unchanged.append(summary)

        if documents:
            plan.deleted = self._missing_page_ids(documents, state)

        logger.info(
            f"Check: {len(plan.new)} new, {len(plan.updated)} updated, "
            f"{len(plan.unchanged)} unchanged, {len(plan.deleted)} to delete"
        )
        return plan

    async def migrate_images(self) -> int:
        """
        Localize remote images still referenced by existing articles.

        Returns:
            Number of article files rewritten
        """
        updated = 0
        for article_id in self.article_store.list_ids():
            text = self.article_store.read(article_id)
            localized = await self.image_localizer.localize_all(text, article_id)
            if localized != text:
                self.article_store.replace_content(article_id, localized)
                updated += 1
                logger.info(f"Localized images of article {article_id}")

        logger.info(f"Image migration completed: {updated} articles updated")
        return updated

    async def _fetch_documents(self, full_sync: bool) -> List[RemoteDocument]:
        try:
            documents = await self.reader.fetch_documents()
        except Exception as e:
            logger.error(f"Failed to fetch pages from Notion: {e}", exc_info=True)
            await self.notification_service.send_critical_error_notification(
                error_message=str(e),
                context={"stage": "fetch_documents", "full_sync": full_sync}
            )
            raise

        if not documents:
            logger.warning(
                f"No pages found in database {self.reader.database_id}; check the "
                f"database ID and that the integration has access to it"
            )
        return documents

    async def _process_document(self, document: RemoteDocument, state: SyncState) -> str:
        """Convert one page, write its article and record the mapping."""
        metadata = extract_metadata(document)
        logger.info(f"Processing page {document.id} ({metadata.title})")

        content = await self.converter.blocks_to_markdown(document.id)
        if not content.strip():
            raise EmptyDocumentError(f"Page {metadata.title} has no content")

        article_id = state.synced_pages.get(document.id) or generate_article_id()
        read_time = calculate_read_time(content)
        content = await self.image_localizer.localize_all(content, article_id)

        self.article_store.write(LocalArticle(
            id=article_id,
            title=metadata.title,
            date=metadata.date,
            read_time=read_time,
            content=content,
            category=metadata.category,
            tags=metadata.tags,
        ))
        state.synced_pages[document.id] = article_id

        logger.info(f"Synced page {document.id} to article {article_id}")
        return article_id

    @staticmethod
    def _next_cutoff(started_at: datetime, earliest_failed_edit: Optional[datetime]) -> datetime:
        """
        Last sync time to persist after a run.

        Held just below the earliest failed update so the next run picks
        that page up again.
        """
        if earliest_failed_edit is None:
            return started_at
        cutoff = min(started_at, earliest_failed_edit - timedelta(microseconds=1))
        logger.info(f"Holding last sync time at {cutoff.isoformat()} to retry failed updates")
        return cutoff

    def _missing_page_ids(self, documents: List[RemoteDocument], state: SyncState) -> List[str]:
        remote_ids = {document.id for document in documents}
        return [page_id for page_id in state.synced_pages if page_id not in remote_ids]

    def _reconcile_deletions(self, documents: List[RemoteDocument], state: SyncState) -> int:
        """
        Drop articles of pages that disappeared remotely.

        An empty remote result may be a transient or permission failure, so it
        never deletes anything.
        """
        if not documents:
            if state.synced_pages:
                logger.warning("Remote returned no pages, skipping deletion reconciliation")
            return 0

        deleted = 0
        for page_id in self._missing_page_ids(documents, state):
            article_id = state.synced_pages.pop(page_id)
            self.article_store.delete(article_id)
            self.image_localizer.remove_images(article_id)
            deleted += 1
            logger.info(f"Removed article {article_id} of deleted page {page_id}")
        return deleted

    async def aclose(self) -> None:
        await self.reader.aclose()
        await self.image_localizer.aclose()


def create_orchestrator() -> SyncOrchestrator:
    """
    Build an orchestrator from environment configuration.

    Raises:
        ConfigurationError: If credentials or settings are missing or invalid
    """
    notion_config = get_notion_config()
    retry_config = get_retry_config()
    paths = get_blog_paths()

    reader = NotionReader(
        api_token=notion_config.token,
        database_id=notion_config.database_id,
        max_retries=retry_config.max_retries,
        retry_delay=retry_config.delay,
    )
    return SyncOrchestrator(
        reader=reader,
        state_store=SyncStateStore(paths.state_file),
        article_store=ArticleStore(paths.articles_dir),
        image_localizer=ImageLocalizer(
            images_dir=paths.images_dir,
            url_prefix=paths.images_url_prefix,
            timeout=get_image_timeout(),
        ),
    )
