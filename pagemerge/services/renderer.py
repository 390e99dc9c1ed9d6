"""Markdown rendering of an ordered list of extracted pages."""

import html
from datetime import datetime
from typing import Optional, Sequence

from dateutil import parser as date_parser

from pagemerge.models.page import PageResult

NO_CONTENT = "No content found"
NO_TITLE = "No Title"

# Applied in order, after entity decoding
_ESCAPE_SEQUENCES = (
    ("\\n", "\n"),
    ("\\t", "\t"),
    ("\\r", ""),
    ('\\"', '"'),
    ("\\'", "'"),
    ("\\\\", "\\"),
)


def normalize_text(text: Optional[str]) -> str:
    """Decode HTML entities, then unescape backslash sequences in *text*."""
    if not text:
        return ""
    result = html.unescape(text)
    for escaped, literal in _ESCAPE_SEQUENCES:
        result = result.replace(escaped, literal)
    return result


def _parse_date(value: str) -> Optional[datetime]:
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def format_date(value: str) -> Optional[str]:
    """Render *value* as a ``M/D/YYYY`` calendar date, or None if unparseable."""
    parsed = _parse_date(value)
    if parsed is None:
        return None
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def render_markdown(pages: Sequence[PageResult], original_url: str) -> str:
    """Merge *pages* into a single Markdown document.

    Title, author, date, summary and domain come from the first page only.
    Every page contributes its content, with a ``### Page N`` marker in front
    of each page after the first.
    """
    if not pages:
        return NO_CONTENT

    first = pages[0]
    parts = [f"# {normalize_text(first.title or NO_TITLE)}\n\n"]

    if first.author:
        parts.append(f"*Author: {normalize_text(first.author)}*\n\n")

    if first.date_published:
        published = format_date(first.date_published)
        if published:
            parts.append(f"*Published: {published}*\n\n")

    if first.excerpt:
        parts.append(f"## Summary\n{normalize_text(first.excerpt)}\n\n")

    parts.append("## Content\n")
    for index, page in enumerate(pages):
        if not page.content:
            continue
        if index > 0:
            parts.append(f"### Page {index + 1}\n\n")
        parts.append(f"{normalize_text(page.content)}\n\n")

    parts.append(f"---\nSource: [{normalize_text(first.domain)}]({original_url})\n")
    return "".join(parts)
