"""Unit tests for page metadata extraction."""

from datetime import date, datetime, timezone

import pytest

from services.notion_reader.metadata import (
    UNTITLED,
    calculate_read_time,
    extract_category,
    extract_metadata,
    extract_tags,
    extract_title,
    format_date,
)
from shared.models import RemoteDocument


def title_prop(*parts):
    return {"type": "title", "title": [{"plain_text": p} for p in parts]}


def make_document(properties, created="2024-06-01T12:00:00.000Z"):
    return RemoteDocument.from_dict({
        "id": "page-1",
        "properties": properties,
        "last_edited_time": "2025-02-01T00:00:00.000Z",
        "created_time": created,
        "parent": {"type": "database_id", "database_id": "db"},
    })


class TestExtractTitle:
    """Tests for extract_title."""

    def test_english_key(self):
        assert extract_title({"Name": title_prop("Hi")}) == "Hi"

    def test_chinese_key_takes_priority(self):
        properties = {"Name": title_prop("English"), "标题": title_prop("中文")}

        assert extract_title(properties) == "中文"

    def test_joins_all_spans(self):
        assert extract_title({"Title": title_prop("Part ", "two")}) == "Part two"

    def test_skips_empty_and_wrong_types(self):
        properties = {
            "标题": title_prop(),
            "Title": {"type": "rich_text", "rich_text": []},
            "name": title_prop("fallback"),
        }

        assert extract_title(properties) == "fallback"

    def test_renamed_title_property(self):
        properties = {
            "Summary": {"type": "rich_text", "rich_text": [{"plain_text": "not me"}]},
            "文章": title_prop("Custom"),
        }

        assert extract_title(properties) == "Custom"

    def test_known_key_wins_over_renamed_property(self):
        assert extract_title({"文章": title_prop("Custom"), "Name": title_prop("Named")}) == "Named"

    def test_untitled(self):
        assert extract_title({}) == UNTITLED


class TestCategoryAndTags:
    """Tests for extract_category and extract_tags."""

    def test_category(self):
        properties = {"分类": {"type": "select", "select": {"name": "随笔"}}}

        assert extract_category(properties) == "随笔"

    def test_category_absent(self):
        assert extract_category({"Category": {"type": "select", "select": None}}) is None

    def test_tags(self):
        properties = {"Tags": {"type": "multi_select", "multi_select": [{"name": "a"}, {"name": "b"}]}}

        assert extract_tags(properties) == ["a", "b"]

    def test_empty_tags_are_absent(self):
        """Test that an empty selection is reported as None, not []."""
        assert extract_tags({"Tags": {"type": "multi_select", "multi_select": []}}) is None


class TestFormatDate:
    """Tests for format_date."""

    @pytest.mark.parametrize("value,expected", [
        ("2025-01-01", "2025年1月1日"),
        ("2025-12-31", "2025年12月31日"),
        ("2024-03-05T23:30:00.000+08:00", "2024年3月5日"),
        ("2024-03-05T10:00:00.000Z", "2024年3月5日"),
        (date(2023, 7, 9), "2023年7月9日"),
        (datetime(2023, 7, 9, 1, tzinfo=timezone.utc), "2023年7月9日"),
    ])
    def test_format(self, value, expected):
        assert format_date(value) == expected


class TestCalculateReadTime:
    """Tests for calculate_read_time."""

    @pytest.mark.parametrize("content,expected", [
        ("Hello", "1 分钟"),
        ("a" * 300, "1 分钟"),
        ("a" * 301, "2 分钟"),
        (" \n\t".join(["a" * 100] * 7), "3 分钟"),
    ])
    def test_read_time(self, content, expected):
        assert calculate_read_time(content) == expected


class TestExtractMetadata:
    """Tests for extract_metadata."""

    def test_full_properties(self):
        document = make_document({
            "Title": title_prop("Hi"),
            "Date": {"type": "date", "date": {"start": "2025-01-01"}},
            "Category": {"type": "select", "select": {"name": "Tech"}},
            "标签": {"type": "multi_select", "multi_select": [{"name": "python"}]},
        })

        metadata = extract_metadata(document)

        assert metadata.title == "Hi"
        assert metadata.date == "2025年1月1日"
        assert metadata.category == "Tech"
        assert metadata.tags == ["python"]

    def test_date_falls_back_to_last_edited_property(self):
        document = make_document({
            "Date": {"type": "date", "date": None},
            "最后编辑时间": {"type": "last_edited_time", "last_edited_time": "2025-03-04T00:00:00.000Z"},
        })

        assert extract_metadata(document).date == "2025年3月4日"

    def test_date_falls_back_to_created_time(self):
        metadata = extract_metadata(make_document({}))

        assert metadata.title == UNTITLED
        assert metadata.date == "2024年6月1日"
        assert metadata.category is None
        assert metadata.tags is None
