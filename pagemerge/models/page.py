from typing import Optional

from pydantic import BaseModel, ConfigDict


class PageResult(BaseModel):
    """One extracted page of an article.

    Every field except ``source_url`` may be missing: extractors return
    whatever they could recover from the page.
    """

    model_config = ConfigDict(frozen=True)

    source_url: str
    title: Optional[str] = None
    author: Optional[str] = None
    date_published: Optional[str] = None  # raw value, parsed only when rendered
    excerpt: Optional[str] = None
    content: Optional[str] = None  # Markdown, may still hold escaped fragments
    domain: Optional[str] = None
