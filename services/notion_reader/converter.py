"""Conversion of Notion block trees into Markdown."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from shared.models import RemoteBlock, RichTextSpan, spans_from

logger = logging.getLogger(__name__)

# Guards against malformed parent/child cycles in the remote tree.
MAX_DEPTH = 10

DEFAULT_CALLOUT_ICON = "💡"
LIST_TYPES = ("bulleted_list_item", "numbered_list_item", "to_do")

ListChildrenPage = Callable[[str, Optional[str]], Awaitable[Dict[str, Any]]]


def rich_text_to_markdown(span: RichTextSpan) -> str:
    """
    Render one styled span as inline Markdown.

    Marks nest in a fixed order: code innermost, then bold, italic,
    strikethrough, underline, and the link wrapper outermost. Markdown
    metacharacters in the text are passed through unescaped.
    """
    text = span.plain_text
    marks = span.annotations

    if marks.code:
        text = f"`{text}`"
    if marks.bold:
        text = f"**{text}**"
    if marks.italic:
        text = f"*{text}*"
    if marks.strikethrough:
        text = f"~~{text}~~"
    if marks.underline:
        text = f"<u>{text}</u>"

    if span.href:
        text = f"[{text}]({span.href})"

    return text


def join_spans(spans: List[RichTextSpan]) -> str:
    return "".join(rich_text_to_markdown(span) for span in spans)


def plain_text(spans: List[RichTextSpan]) -> str:
    return "".join(span.plain_text for span in spans)


def indent(markdown: str, prefix: str = "  ") -> str:
    """Prefix every line of ``markdown``."""
    return "\n".join(prefix + line for line in markdown.split("\n"))


def image_url(block: RemoteBlock) -> str:
    """Hosted file URL if present, otherwise the external URL."""
    hosted = (block.payload.get("file") or {}).get("url")
    external = (block.payload.get("external") or {}).get("url")
    return hosted or external or ""


def _paragraph(block: RemoteBlock) -> str:
    text = join_spans(block.rich_text)
    return f"{text}\n\n" if text else "\n"


def _heading(level: int) -> Callable[[RemoteBlock], str]:
    def convert(block: RemoteBlock) -> str:
        return f"{'#' * level} {join_spans(block.rich_text)}\n\n"
    return convert


def _bulleted(block: RemoteBlock) -> str:
    return f"- {join_spans(block.rich_text)}\n"


def _numbered(block: RemoteBlock) -> str:
    # Renderers renumber ordered lists, so every item is "1."
    return f"1. {join_spans(block.rich_text)}\n"


def _to_do(block: RemoteBlock) -> str:
    checked = "x" if block.payload.get("checked") else " "
    return f"- [{checked}] {join_spans(block.rich_text)}\n"


def _quote(block: RemoteBlock) -> str:
    return f"> {join_spans(block.rich_text)}\n\n"


def _code(block: RemoteBlock) -> str:
    language = block.payload.get("language") or ""
    return f"```{language}\n{plain_text(block.rich_text)}\n```\n\n"


def _divider(block: RemoteBlock) -> str:
    return "---\n\n"


def _image(block: RemoteBlock) -> str:
    url = image_url(block)
    if not url:
        return ""
    caption = plain_text(spans_from(block.payload.get("caption")))
    return f"![{caption}]({url})\n\n"


def _callout(block: RemoteBlock) -> str:
    icon = block.payload.get("icon") or {}
    emoji = icon.get("emoji") if icon.get("type") == "emoji" else None
    return f"> {emoji or DEFAULT_CALLOUT_ICON} {join_spans(block.rich_text)}\n\n"


def _toggle(block: RemoteBlock) -> str:
    return f"<details>\n<summary>{join_spans(block.rich_text)}</summary>\n\n"


def _table(block: RemoteBlock) -> str:
    return ""


def _table_row(block: RemoteBlock) -> str:
    cells = [join_spans(spans_from(cell)) for cell in block.payload.get("cells") or []]
    return f"| {' | '.join(cells)} |\n"


def _passthrough(block: RemoteBlock) -> str:
    """Unknown or container-only kinds emit no marker of their own."""
    return ""


CONVERTERS: Dict[str, Callable[[RemoteBlock], str]] = {
    "paragraph": _paragraph,
    "heading_1": _heading(1),
    "heading_2": _heading(2),
    "heading_3": _heading(3),
    "bulleted_list_item": _bulleted,
    "numbered_list_item": _numbered,
    "to_do": _to_do,
    "quote": _quote,
    "code": _code,
    "divider": _divider,
    "image": _image,
    "callout": _callout,
    "toggle": _toggle,
    "table": _table,
    "table_row": _table_row,
}


def convert_block(block: RemoteBlock) -> str:
    """Markdown for ``block`` itself, without its children."""
    return CONVERTERS.get(block.type, _passthrough)(block)


class MarkdownConverter:
    """Walks a block tree depth-first and renders it as Markdown."""

    def __init__(self, list_children: ListChildrenPage, max_depth: int = MAX_DEPTH):
        """
        Args:
            list_children: Coroutine ``(block_id, start_cursor)`` returning one
                page of children with ``results``, ``has_more``, ``next_cursor``
            max_depth: Number of nesting levels rendered; deeper subtrees render empty
        """
        self.list_children = list_children
        self.max_depth = max_depth

    async def fetch_children(self, block_id: str) -> List[RemoteBlock]:
        """Every child of ``block_id``, following pagination until exhausted."""
        blocks: List[RemoteBlock] = []
        cursor = None

        while True:
            response = await self.list_children(block_id, cursor)
            blocks.extend(
                RemoteBlock.from_dict(item)
                for item in response.get("results", [])
                if item.get("type")
            )
            cursor = response.get("next_cursor")
            if not response.get("has_more") or not cursor:
                return blocks

    async def blocks_to_markdown(self, block_id: str, depth: int = 0) -> str:
        """Render all children of ``block_id`` in order, trailing whitespace trimmed."""
        if depth >= self.max_depth:
            logger.warning(f"Block {block_id} exceeds max depth {self.max_depth}, skipping subtree")
            return ""

        markdown = ""
        previous_type = None

        for block in await self.fetch_children(block_id):
            fragment = await self.render_block(block, depth)
            if not fragment:
                continue
            if previous_type in LIST_TYPES and block.type not in LIST_TYPES:
                # close the list so the next block is not read as a continuation
                markdown += "\n"
            markdown += fragment
            previous_type = block.type

        return markdown.rstrip()

    async def render_block(self, block: RemoteBlock, depth: int = 0) -> str:
        """Markdown for ``block`` including its children, placed per block kind."""
        markdown = convert_block(block)
        if not block.has_children:
            if block.type == "toggle":
                markdown += "</details>\n\n"
            return markdown

        children = await self.blocks_to_markdown(block.id, depth + 1)

        if block.type in LIST_TYPES:
            if children:
                markdown += indent(children) + "\n"
        elif block.type == "toggle":
            if children:
                markdown += children + "\n\n"
            markdown += "</details>\n\n"
        elif block.type == "table":
            if children:
                markdown += self._with_header_separator(block, children) + "\n\n"
        elif children:
            markdown += children + "\n\n"

        return markdown

    @staticmethod
    def _with_header_separator(block: RemoteBlock, rows: str) -> str:
        lines = rows.split("\n")
        width = block.payload.get("table_width") or lines[0].count(" | ") + 1
        separator = "| " + " | ".join(["---"] * width) + " |"
        return "\n".join([lines[0], separator] + lines[1:])
