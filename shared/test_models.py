"""Unit tests for shared data models."""

from datetime import datetime, timezone

import pytest

from shared.models import (
    EPOCH,
    RemoteBlock,
    RemoteDocument,
    RichTextSpan,
    SyncResult,
    SyncState,
    parse_timestamp,
)


class TestParseTimestamp:
    """Tests for Notion timestamp parsing."""

    def test_parse_zulu_timestamp(self):
        """Test parsing the Z-suffixed form Notion returns."""
        parsed = parse_timestamp("2025-01-01T10:30:00.000Z")

        assert parsed == datetime(2025, 1, 1, 10, 30, tzinfo=timezone.utc)

    def test_parse_offset_timestamp(self):
        """Test parsing a timestamp with an explicit offset."""
        parsed = parse_timestamp("2025-01-01T08:00:00+08:00")

        assert parsed == datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self):
        """Test that a naive timestamp is treated as UTC."""
        parsed = parse_timestamp("2025-01-01T00:00:00")

        assert parsed.tzinfo is not None
        assert parsed == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestRichTextSpan:
    """Tests for RichTextSpan parsing."""

    def test_from_dict_with_annotations(self):
        """Test building a span from a Notion rich text object."""
        span = RichTextSpan.from_dict({
            "plain_text": "hi",
            "annotations": {"bold": True, "italic": False, "code": True},
            "href": "https://example.com"
        })

        assert span.plain_text == "hi"
        assert span.annotations.bold is True
        assert span.annotations.code is True
        assert span.annotations.italic is False
        assert span.annotations.underline is False
        assert span.href == "https://example.com"

    def test_from_dict_without_annotations(self):
        """Test that missing annotations default to no formatting."""
        span = RichTextSpan.from_dict({"plain_text": "plain"})

        assert span.href is None
        assert not any(vars(span.annotations).values())


class TestRemoteBlock:
    """Tests for RemoteBlock parsing."""

    def test_from_dict_paragraph(self):
        """Test parsing a paragraph block."""
        block = RemoteBlock.from_dict({
            "id": "b1",
            "type": "paragraph",
            "has_children": False,
            "paragraph": {"rich_text": [{"plain_text": "Hello"}]}
        })

        assert block.id == "b1"
        assert block.type == "paragraph"
        assert block.has_children is False
        assert [span.plain_text for span in block.rich_text] == ["Hello"]

    def test_from_dict_without_rich_text(self):
        """Test parsing a block whose payload carries no text."""
        block = RemoteBlock.from_dict({
            "id": "b2",
            "type": "divider",
            "has_children": False,
            "divider": {}
        })

        assert block.rich_text == []
        assert block.payload == {}


class TestRemoteDocument:
    """Tests for RemoteDocument parsing."""

    def test_from_dict(self):
        """Test parsing a search result page."""
        document = RemoteDocument.from_dict({
            "id": "page-1",
            "parent": {"type": "database_id", "database_id": "db-1"},
            "properties": {"Name": {"type": "title", "title": []}},
            "last_edited_time": "2025-01-02T00:00:00.000Z",
            "created_time": "2025-01-01T00:00:00.000Z"
        })

        assert document.id == "page-1"
        assert document.parent_collection_id == "db-1"
        assert document.last_edited_time == datetime(2025, 1, 2, tzinfo=timezone.utc)
        assert document.created_time == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_missing_created_time_defaults_to_epoch(self):
        """Test that a page without created_time falls back to the epoch."""
        document = RemoteDocument.from_dict({
            "id": "page-2",
            "last_edited_time": "2025-01-02T00:00:00.000Z"
        })

        assert document.created_time == EPOCH
        assert document.parent_collection_id is None


class TestSyncState:
    """Tests for SyncState defaults."""

    def test_default_is_first_run(self):
        """Test that a fresh state starts at the epoch with no pages."""
        state = SyncState()

        assert state.last_sync_time == EPOCH
        assert state.synced_pages == {}

    def test_defaults_are_not_shared(self):
        """Test that each state gets its own mapping."""
        first = SyncState()
        second = SyncState()
        first.synced_pages["a"] = "1"

        assert second.synced_pages == {}


class TestSyncResult:
    """Tests for SyncResult tallies."""

    def test_changed_counts_writes_and_deletes(self):
        """Test that skips do not count as changes."""
        result = SyncResult(new=1, updated=2, skipped=5, deleted=1, total=8)

        assert result.changed == 4

    @pytest.mark.parametrize("errors,success", [([], True), (["p1: boom"], False)])
    def test_to_dict(self, errors, success):
        """Test the serialized tally."""
        result = SyncResult(new=1, total=1, errors=errors)

        data = result.to_dict()

        assert data["success"] is success
        assert data["synced"] == 1
        assert data["total"] == 1
        assert data["errors"] == errors
