"""Shared configuration utilities."""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or malformed."""


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
    """Get environment variable with optional default and required validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {key} is not set")
    return value


def format_database_id(database_id: str) -> str:
    """
    Normalize a Notion database ID to the dashed 8-4-4-4-12 form.

    Handles:
    - Plain UUID: 2fb86a4c5fbf806dbeb6f3f2c1b23d10
    - UUID with dashes: 2fb86a4c-5fbf-806d-beb6-f3f2c1b23d10
    - Notion URL: https://www.notion.so/2fb86a4c5fbf806dbeb6f3f2c1b23d10?v=...

    Args:
        database_id: Database ID in any format

    Returns:
        Dashed, lower-case database ID

    Raises:
        ConfigurationError: If the database ID is invalid
    """
    database_id = database_id.strip()

    if database_id.startswith('http'):
        match = re.search(r'([a-fA-F0-9]{32}|[a-fA-F0-9-]{36})(\?|$)', database_id)
        if not match:
            raise ConfigurationError(f"Could not extract database ID from URL: {database_id}")
        database_id = match.group(1)

    compact = database_id.replace('-', '').lower()
    if not re.match(r'^[a-f0-9]{32}$', compact):
        raise ConfigurationError(
            f"Invalid database ID format: {database_id}. Expected 32 hex characters."
        )

    return f"{compact[:8]}-{compact[8:12]}-{compact[12:16]}-{compact[16:20]}-{compact[20:]}"


@dataclass
class NotionConfig:
    """Credentials for the Notion integration."""
    token: str
    database_id: str


@dataclass
class BlogPaths:
    """Local filesystem layout of the blog."""
    articles_dir: Path
    images_dir: Path
    images_url_prefix: str
    state_file: Path


@dataclass
class RetryConfig:
    """Fixed-delay retry policy for remote calls."""
    max_retries: int = 3
    delay: float = 2.0


def get_notion_config() -> NotionConfig:
    """Get Notion credentials from environment."""
    token = get_env("NOTION_TOKEN", required=True)
    database_id = get_env("NOTION_DATABASE_ID", required=True)
    return NotionConfig(token=token, database_id=format_database_id(database_id))


def get_blog_paths(root: Optional[Path] = None) -> BlogPaths:
    """Get article, image and state locations, resolved against the blog root."""
    root = Path(root or get_env("BLOG_ROOT", os.getcwd()))
    return BlogPaths(
        articles_dir=root / get_env("ARTICLES_DIR", "app/data/articles"),
        images_dir=root / get_env("IMAGES_DIR", "public/images/articles"),
        images_url_prefix=get_env("IMAGES_URL_PREFIX", "/images/articles").rstrip("/"),
        state_file=root / get_env("SYNC_STATE_FILE", ".notion-sync-state.json"),
    )


def get_retry_config() -> RetryConfig:
    """Get retry policy from environment."""
    try:
        return RetryConfig(
            max_retries=int(get_env("SYNC_MAX_RETRIES", "3")),
            delay=float(get_env("SYNC_RETRY_DELAY", "2.0")),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid retry configuration: {e}") from e


def get_image_timeout() -> float:
    """Get per-image download timeout in seconds."""
    try:
        return float(get_env("IMAGE_DOWNLOAD_TIMEOUT", "15.0"))
    except ValueError as e:
        raise ConfigurationError(f"Invalid IMAGE_DOWNLOAD_TIMEOUT: {e}") from e
