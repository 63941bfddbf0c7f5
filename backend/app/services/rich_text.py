"""
Rich-text helpers.

The content store keeps auto-reply bodies either as plain strings or as
Portable Text: a list of typed blocks, each paragraph-like block holding a
list of inline spans, e.g.

    [{"_type": "block", "children": [{"_type": "span", "text": "Hello"}]}]

flatten_rich_text() reduces either shape to plain text for the text/plain
part of an email; plain_text_to_html() re-wraps that text as simple HTML.
"""

import html
from typing import Any


def _block_text(block: Any) -> str:
    """Concatenate the span texts of one paragraph block; "" for anything else."""
    if not isinstance(block, dict) or block.get("_type") != "block":
        return ""
    children = block.get("children")
    if not isinstance(children, list):
        return ""
    parts = []
    for child in children:
        if isinstance(child, dict):
            text = child.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)


def flatten_rich_text(value: Any) -> str:
    """
    Convert a string or a Portable Text block list to plain text.

    Strings are returned unchanged. For a block list, non-paragraph elements
    and blocks with no text are dropped, the rest are joined with newlines
    and trailing whitespace is stripped. Any other shape yields "".

    Never raises, and flatten_rich_text(flatten_rich_text(x)) equals
    flatten_rich_text(x) for every x.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, (list, tuple)):
        return ""

    lines = [text for text in (_block_text(block) for block in value) if text]
    return "\n".join(lines).rstrip()


def plain_text_to_html(text: str) -> str:
    """Escape text for HTML and turn newlines into <br/> line breaks."""
    if not text:
        return ""
    escaped = html.escape(text, quote=True)
    return escaped.replace("\r\n", "\n").replace("\n", "<br/>")
