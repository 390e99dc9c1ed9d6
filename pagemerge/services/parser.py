"""Default content extractor: turns one article page into a :class:`PageResult`."""

import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup, Tag
from markdownify import markdownify

from pagemerge.errors import ExtractionError
from pagemerge.models.page import PageResult
from pagemerge.services.fetcher import Fetcher, fetch_url
from pagemerge.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Checked in order; the first selector that matches wins.
_CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    '[itemprop="articleBody"]',
    ".entry-content",
    ".post-content",
    ".article-body",
    ".article-content",
    ".story-body",
)

_AUTHOR_META = (
    {"name": "author"},
    {"property": "article:author"},
    {"name": "twitter:creator"},
    {"name": "dc.creator"},
)

_DATE_META = (
    {"property": "article:published_time"},
    {"name": "date"},
    {"name": "pubdate"},
    {"name": "publishdate"},
    {"itemprop": "datePublished"},
    {"name": "dc.date"},
)


def _meta_content(soup: BeautifulSoup, candidates) -> Optional[str]:
    for attrs in candidates:
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            value = str(meta["content"]).strip()
            if value:
                return value
    return None


def _extract_title(soup: BeautifulSoup) -> Optional[str]:
    og_title = _meta_content(soup, ({"property": "og:title"},))
    if og_title:
        return og_title
    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)
    title_tag = soup.find("title")
    if title_tag and title_tag.get_text(strip=True):
        return title_tag.get_text(strip=True)
    return None


def _extract_author(soup: BeautifulSoup) -> Optional[str]:
    author = _meta_content(soup, _AUTHOR_META)
    if author:
        return author
    node = soup.select_one('[rel="author"], [itemprop="author"], .byline, .author')
    if node:
        text = node.get_text(" ", strip=True)
        # "By Jane Doe" bylines
        text = re.sub(r"^by\s+", "", text, flags=re.IGNORECASE)
        return text or None
    return None


def _extract_date(soup: BeautifulSoup) -> Optional[str]:
    published = _meta_content(soup, _DATE_META)
    if published:
        return published
    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag:
        return str(time_tag["datetime"]).strip() or None
    return None


def _extract_description(soup: BeautifulSoup) -> Optional[str]:
    return _meta_content(
        soup,
        ({"name": "description"}, {"property": "og:description"}),
    )


def _find_main_content(soup: BeautifulSoup) -> Tag:
    """Return the most likely article container, falling back to ``<body>``."""
    for selector in _CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node and node.get_text(strip=True):
            return node
    return soup.find("body") or soup


def _to_markdown(node: Tag) -> str:
    text = markdownify(str(node), heading_style="ATX")
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def extract_page(html: str, url: str) -> PageResult:
    """Build a :class:`PageResult` from the raw *html* of *url*."""
    # Metadata is read from the unsanitized tree; <meta> tags are stripped later
    raw_soup = BeautifulSoup(html, "lxml")

    main_node = _find_main_content(sanitize(html))
    content = _to_markdown(main_node)

    return PageResult(
        source_url=url,
        title=_extract_title(raw_soup),
        author=_extract_author(raw_soup),
        date_published=_extract_date(raw_soup),
        excerpt=_extract_description(raw_soup),
        content=content or None,
        domain=urlparse(url).hostname,
    )


async def parse_article(url: str, fetch: Fetcher = fetch_url) -> PageResult:
    """Fetch *url* and extract its article fields.

    Raises:
        ExtractionError: if the page cannot be fetched or parsed.
    """
    try:
        html = await fetch(url)
    except (ValueError, httpx.HTTPError, RuntimeError) as exc:
        raise ExtractionError(url, str(exc) or exc.__class__.__name__) from exc

    try:
        return extract_page(html, url)
    except Exception as exc:
        logger.exception("Parser: extraction crashed for %s", url)
        raise ExtractionError(url, str(exc) or exc.__class__.__name__) from exc
