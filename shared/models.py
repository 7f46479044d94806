"""Shared data models for the Notion to blog Markdown sync."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse a Notion ISO-8601 timestamp into an aware datetime (UTC if naive)."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Annotations:
    """Formatting flags of a rich text span."""
    bold: bool = False
    italic: bool = False
    code: bool = False
    strikethrough: bool = False
    underline: bool = False


@dataclass
class RichTextSpan:
    """A single styled run of text."""
    plain_text: str
    annotations: Annotations = field(default_factory=Annotations)
    href: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RichTextSpan":
        raw = data.get("annotations") or {}
        return cls(
            plain_text=data.get("plain_text", ""),
            annotations=Annotations(
                bold=bool(raw.get("bold")),
                italic=bool(raw.get("italic")),
                code=bool(raw.get("code")),
                strikethrough=bool(raw.get("strikethrough")),
                underline=bool(raw.get("underline")),
            ),
            href=data.get("href"),
        )


def spans_from(rich_text: Optional[List[Dict[str, Any]]]) -> List[RichTextSpan]:
    return [RichTextSpan.from_dict(item) for item in rich_text or []]


@dataclass
class RemoteBlock:
    """A node in the remote document tree; children are listed separately."""
    id: str
    type: str
    has_children: bool
    payload: Dict[str, Any]
    rich_text: List[RichTextSpan]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteBlock":
        block_type = data.get("type") or "unsupported"
        payload = data.get(block_type) or {}
        return cls(
            id=data.get("id", ""),
            type=block_type,
            has_children=bool(data.get("has_children")),
            payload=payload,
            rich_text=spans_from(payload.get("rich_text")),
        )


@dataclass
class RemoteDocument:
    """A page of the remote collection, as returned by search."""
    id: str
    properties: Dict[str, Any]
    last_edited_time: datetime
    created_time: datetime
    parent: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteDocument":
        created = data.get("created_time")
        return cls(
            id=data["id"],
            properties=data.get("properties") or {},
            last_edited_time=parse_timestamp(data["last_edited_time"]),
            created_time=parse_timestamp(created) if created else EPOCH,
            parent=data.get("parent") or {},
        )

    @property
    def parent_collection_id(self) -> Optional[str]:
        return self.parent.get("database_id")


@dataclass
class DocumentMetadata:
    """Front-matter fields resolved from a document's properties."""
    title: str
    date: str
    category: Optional[str] = None
    tags: Optional[List[str]] = None


@dataclass
class LocalArticle:
    """A Markdown article written to the blog's articles directory."""
    id: str
    title: str
    date: str
    read_time: str
    content: str
    category: Optional[str] = None
    tags: Optional[List[str]] = None


@dataclass
class SyncState:
    """Persisted inter-run state: cutoff time and remote id -> article id mapping."""
    last_sync_time: datetime = EPOCH
    synced_pages: Dict[str, str] = field(default_factory=dict)


@dataclass
class SyncResult:
    """Tally of a single synchronization run."""
    new: int = 0
    updated: int = 0
    skipped: int = 0
    deleted: int = 0
    total: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return self.new + self.updated + self.deleted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": not self.errors,
            "total": self.total,
            "synced": self.new,
            "updated": self.updated,
            "skipped": self.skipped,
            "deleted": self.deleted,
            "errors": list(self.errors),
        }


@dataclass
class DocumentSummary:
    """A document's classification in a dry-run check."""
    id: str
    title: str
    last_edited_time: datetime


@dataclass
class SyncPlan:
    """Dry-run classification of the remote collection against the sync state."""
    new: List[DocumentSummary] = field(default_factory=list)
    updated: List[DocumentSummary] = field(default_factory=list)
    unchanged: List[DocumentSummary] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        def _summaries(items: List[DocumentSummary]) -> List[Dict[str, str]]:
            return [
                {"id": s.id, "title": s.title, "last_edited_time": s.last_edited_time.isoformat()}
                for s in items
            ]

        return {
            "new": _summaries(self.new),
            "updated": _summaries(self.updated),
            "unchanged": len(self.unchanged),
            "deleted": list(self.deleted),
        }
