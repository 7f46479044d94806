"""In-memory stand-ins for the Notion API used by the test suites."""

from typing import Any, Dict, List, Optional


def text(content: str, href: Optional[str] = None, **annotations) -> Dict[str, Any]:
    """A Notion rich text object."""
    return {
        "type": "text",
        "plain_text": content,
        "href": href,
        "annotations": {
            "bold": False,
            "italic": False,
            "strikethrough": False,
            "underline": False,
            "code": False,
            **annotations,
        },
    }


def block(block_id: str, block_type: str, has_children: bool = False, **payload) -> Dict[str, Any]:
    """A Notion block object; ``payload`` becomes the type-specific body."""
    return {
        "object": "block",
        "id": block_id,
        "type": block_type,
        "has_children": has_children,
        block_type: payload,
    }


def paragraph(block_id: str, content: str, has_children: bool = False) -> Dict[str, Any]:
    return block(block_id, "paragraph", has_children, rich_text=[text(content)] if content else [])


class FakeBlockStore:
    """
    Serves block children from a dict, paginated like the real endpoint.

    ``children`` maps a parent block ID to its ordered child blocks.
    """

    def __init__(self, children: Dict[str, List[Dict[str, Any]]], page_size: int = 100):
        self.children = children
        self.page_size = page_size
        self.calls: List[tuple] = []

    async def list_children(self, block_id: str, start_cursor: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append((block_id, start_cursor))
        items = self.children.get(block_id, [])
        start = int(start_cursor) if start_cursor else 0
        end = start + self.page_size
        has_more = end < len(items)
        return {
            "object": "list",
            "results": items[start:end],
            "has_more": has_more,
            "next_cursor": str(end) if has_more else None,
        }
