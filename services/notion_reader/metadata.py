"""Front-matter metadata extraction from Notion page properties."""

import math
import re
from datetime import date, datetime
from itertools import chain
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from shared.models import DocumentMetadata, RemoteDocument, parse_timestamp

UNTITLED = "未命名"
WORDS_PER_MINUTE = 300

TITLE_KEYS = ("标题", "Title", "title", "Name", "name", "標題")
DATE_KEYS = ("发布日期", "Date", "date", "發布日期")
CREATED_KEYS = ("创建时间", "Created", "created_time")
LAST_EDITED_KEYS = ("最后编辑时间", "Last edited time", "last_edited_time")
CATEGORY_KEYS = ("分类", "Category", "category", "分類")
TAGS_KEYS = ("标签", "Tags", "tags", "標籤")


def _properties_of_type(properties: Dict[str, Any], keys: Sequence[str], prop_type: str) -> Iterator[Dict[str, Any]]:
    """Candidate properties in key order, keeping only those of ``prop_type``."""
    for key in keys:
        prop = properties.get(key)
        if isinstance(prop, dict) and prop.get("type") == prop_type:
            yield prop


def extract_title(properties: Dict[str, Any]) -> str:
    """
    Title from the known title keys, then from the database's own title
    property whatever it is named.
    """
    # every database has exactly one property of type "title"
    renamed = _properties_of_type(properties, list(properties), "title")
    for prop in chain(_properties_of_type(properties, TITLE_KEYS, "title"), renamed):
        text = "".join(item.get("plain_text", "") for item in prop.get("title") or [])
        if text.strip():
            return text
    return UNTITLED


def extract_date(document: RemoteDocument) -> Union[str, datetime]:
    """
    Raw publication date: explicit date property, then a last-edited
    property, then the page's creation time.
    """
    properties = document.properties

    for prop in _properties_of_type(properties, DATE_KEYS, "date"):
        start = (prop.get("date") or {}).get("start")
        if start:
            return start
    for prop in _properties_of_type(properties, LAST_EDITED_KEYS, "last_edited_time"):
        if prop.get("last_edited_time"):
            return prop["last_edited_time"]
    for prop in _properties_of_type(properties, CREATED_KEYS, "created_time"):
        if prop.get("created_time"):
            return prop["created_time"]

    return document.created_time


def extract_category(properties: Dict[str, Any]) -> Optional[str]:
    for prop in _properties_of_type(properties, CATEGORY_KEYS, "select"):
        name = (prop.get("select") or {}).get("name")
        if name:
            return name
    return None


def extract_tags(properties: Dict[str, Any]) -> Optional[List[str]]:
    """Multi-select names; an empty selection is reported as absent."""
    for prop in _properties_of_type(properties, TAGS_KEYS, "multi_select"):
        tags = [item["name"] for item in prop.get("multi_select") or [] if item.get("name")]
        if tags:
            return tags
    return None


def format_date(value: Union[str, date, datetime]) -> str:
    """
    Format as ``YYYY年M月D日``.

    The display layer parses this exact shape. Date-only strings keep their
    calendar day; timestamps use the day in their own UTC offset.
    """
    if isinstance(value, str):
        if re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
            value = date.fromisoformat(value)
        else:
            value = parse_timestamp(value)
    return f"{value.year}年{value.month}月{value.day}日"


def calculate_read_time(content: str) -> str:
    """Minutes to read at 300 non-whitespace characters per minute."""
    characters = len(re.sub(r"\s", "", content))
    return f"{math.ceil(characters / WORDS_PER_MINUTE)} 分钟"


def extract_metadata(document: RemoteDocument) -> DocumentMetadata:
    """Resolve title, date, category and tags of a remote document."""
    properties = document.properties
    return DocumentMetadata(
        title=extract_title(properties),
        date=format_date(extract_date(document)),
        category=extract_category(properties),
        tags=extract_tags(properties),
    )
