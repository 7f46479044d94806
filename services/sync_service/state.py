"""Persistence of incremental sync state between runs."""

import json
import logging
import os
import tempfile
from pathlib import Path

from shared.models import EPOCH, SyncState, parse_timestamp

logger = logging.getLogger(__name__)


class SyncStateError(RuntimeError):
    """Raised when the persisted state file exists but cannot be read."""


class SyncStateStore:
    """
    Reads and writes the sync state JSON file.

    File format::

        {"lastSyncTime": "<ISO-8601>", "syncedPages": {"<page id>": "<article id>"}}
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> SyncState:
        """
        Load persisted state, or a first-run default when no file exists.

        Raises:
            SyncStateError: If the file is present but unreadable
        """
        if not self.path.exists():
            logger.info(f"No sync state at {self.path}, starting from scratch")
            return SyncState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            last_sync = data.get("lastSyncTime")
            return SyncState(
                last_sync_time=parse_timestamp(last_sync) if last_sync else EPOCH,
                synced_pages=dict(data.get("syncedPages") or {}),
            )
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Failed to read sync state {self.path}: {e}")
            raise SyncStateError(f"Unreadable sync state file {self.path}: {e}") from e

    def save(self, state: SyncState) -> None:
        """Overwrite the state file atomically."""
        payload = {
            "lastSyncTime": state.last_sync_time.isoformat(),
            "syncedPages": state.synced_pages,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Saved sync state, last sync time {payload['lastSyncTime']}")
