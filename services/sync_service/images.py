"""Localization of remote article images onto the blog's filesystem."""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r'!\[([^\]]*)\]\((https?://[^\s)]+)\)')
DEFAULT_EXTENSION = ".jpg"


def safe_article_id(article_id: str) -> str:
    return re.sub(r'[^a-zA-Z0-9_-]', '', str(article_id or '')) or 'article'


def guess_extension(url: str) -> str:
    """Extension of the URL path, ignoring the query string."""
    try:
        suffix = Path(urlparse(url).path).suffix
    except ValueError:
        return DEFAULT_EXTENSION
    return suffix or DEFAULT_EXTENSION


class ImageLocalizer:
    """Downloads each remote image once and rewrites links to local references."""

    def __init__(
        self,
        images_dir: Path,
        url_prefix: str = "/images/articles",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        """
        Args:
            images_dir: Directory the image files are written to
            url_prefix: Public path under which ``images_dir`` is served
            client: Optional HTTP client; one is created when omitted
            timeout: Per-download timeout in seconds
        """
        self.images_dir = Path(images_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._owns_client = client is None
        self._resolved: Dict[Tuple[str, int], str] = {}

    async def localize(self, remote_url: str, article_id: str, index: int) -> str:
        """
        Ensure a local copy of ``remote_url`` exists and return its reference.

        Non-http(s) URLs pass through unchanged. A download that fails keeps
        the original URL so the article can still be written.
        """
        if not remote_url.startswith(("http://", "https://")):
            return remote_url

        safe_id = safe_article_id(article_id)
        key = (safe_id, index)
        if key in self._resolved:
            return self._resolved[key]

        filename = f"{safe_id}-{index}{guess_extension(remote_url)}"
        filepath = self.images_dir / filename
        reference = f"{self.url_prefix}/{filename}"

        if filepath.exists() and filepath.stat().st_size > 0:
            self._resolved[key] = reference
            return reference

        self._resolved[key] = await self._download(remote_url, filepath, reference)
        return self._resolved[key]

    async def _download(self, remote_url: str, filepath: Path, reference: str) -> str:
        try:
            response = await self.client.get(remote_url)
        except httpx.HTTPError as e:
            logger.warning(f"Image download error for {remote_url}: {e}")
            return remote_url

        if not response.is_success:
            logger.warning(f"Image download failed ({response.status_code}): {remote_url}")
            return remote_url

        self.images_dir.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(response.content)
        logger.info(f"Saved image {reference}")
        return reference

    async def localize_all(self, markdown: str, article_id: str) -> str:
        """
        Replace every remote Markdown image in ``markdown`` with its local copy.

        Images are numbered from 1 in order of appearance; alt text is kept.
        """
        matches = list(IMAGE_PATTERN.finditer(markdown))
        if not matches:
            return markdown

        parts: List[str] = []
        position = 0
        for index, match in enumerate(matches, start=1):
            alt, url = match.group(1), match.group(2)
            local = await self.localize(url, article_id, index)
            parts.append(markdown[position:match.start()])
            parts.append(f"![{alt}]({local})")
            position = match.end()
        parts.append(markdown[position:])

        return "".join(parts)

    def remove_images(self, article_id: str) -> int:
        """Delete the localized images of an article; returns how many were removed."""
        if not self.images_dir.exists():
            return 0

        pattern = re.compile(rf'^{re.escape(safe_article_id(article_id))}-\d+(\.[^.]+)?$')
        removed = 0
        for path in self.images_dir.iterdir():
            if path.is_file() and pattern.match(path.name):
                path.unlink()
                removed += 1
        return removed

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
