"""Multi-page aggregation: follows "next page" links and merges every page."""

import logging
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

from pagemerge.config import settings
from pagemerge.errors import ExtractionError, InvalidUrlError
from pagemerge.models.page import PageResult
from pagemerge.services.fetcher import Fetcher, cached_fetcher, fetch_url
from pagemerge.services.pagination import find_next_page
from pagemerge.services.parser import parse_article
from pagemerge.services.renderer import render_markdown

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "

# Hard ceiling regardless of what the caller or the environment asks for
MAX_PAGES_HARD_LIMIT = 200

ParseFn = Callable[[str], Awaitable[PageResult]]
FindNextFn = Callable[[str], Awaitable[Optional[str]]]


def validate_url(url: str) -> None:
    """Raise :class:`InvalidUrlError` unless *url* is a well-formed http(s) URL.

    Purely syntactic: no DNS lookup or network access happens here.
    """
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        raise InvalidUrlError(
            f"Invalid URL: {url}. Only HTTP and HTTPS protocols are supported."
        )
    try:
        parsed = urlparse(url)
        # .port raises ValueError on a malformed port
        parsed.port
    except ValueError as exc:
        raise InvalidUrlError(f"Invalid URL format: {url}") from exc
    if not parsed.hostname or any(ch.isspace() for ch in parsed.netloc):
        raise InvalidUrlError(f"Invalid URL format: {url}")


def page_limit(max_pages: Optional[int] = None) -> int:
    """Return the effective page guard: at least 1, at most MAX_PAGES_HARD_LIMIT.

    *None* falls back to the configured ``settings.max_pages``.
    """
    requested = settings.max_pages if max_pages is None else max_pages
    return max(1, min(requested, MAX_PAGES_HARD_LIMIT))


def _normalise(url: str) -> str:
    """Strip the fragment so ``/page#top`` and ``/page`` count as one page."""
    return urlparse(url)._replace(fragment="").geturl()


async def collect_pages(
    url: str,
    parse: ParseFn,
    find_next: FindNextFn,
    max_pages: Optional[int] = None,
    log: Optional[logging.Logger] = None,
) -> List[PageResult]:
    """Walk the pagination chain starting at *url* and return every page in order.

    The walk stops when no next page is found, when the next page was already
    visited (self links and cycles), or after *max_pages* pages.

    Raises:
        ExtractionError: if *parse* fails on any page. Pages collected so far
            are discarded.
    """
    log = log or logger
    limit = page_limit(max_pages)

    visited: set = set()
    pages: List[PageResult] = []
    current_url: Optional[str] = _normalise(url)

    while current_url and current_url not in visited:
        if len(pages) >= limit:
            log.warning("Aggregator: stopping at %d pages, next was %s", limit, current_url)
            break

        log.info("Fetching page: %s", current_url)
        visited.add(current_url)

        try:
            pages.append(await parse(current_url))
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(current_url, str(exc) or exc.__class__.__name__) from exc

        next_url = await find_next(current_url)
        if next_url and _normalise(next_url) not in visited:
            current_url = _normalise(next_url)
        else:
            current_url = None

    return pages


async def extract(
    url: str,
    parse: Optional[ParseFn] = None,
    find_next: Optional[FindNextFn] = None,
    fetch: Optional[Fetcher] = None,
    max_pages: Optional[int] = None,
    reuse_html: Optional[bool] = None,
    log: Optional[logging.Logger] = None,
) -> str:
    """Extract the article at *url*, following its pagination, as Markdown.

    *parse* and *find_next* default to :func:`parse_article` and
    :func:`find_next_page` bound to *fetch*. With *reuse_html* on, both share
    a per-call cache so every page is downloaded once.

    Raises:
        InvalidUrlError: before any network access, for non-http(s) or
            malformed input.
        ExtractionError: if any page's content cannot be extracted.
    """
    validate_url(url)
    log = log or logger

    if reuse_html is None:
        reuse_html = settings.reuse_html
    fetch = fetch or fetch_url
    if reuse_html:
        fetch = cached_fetcher(fetch)

    if parse is None:
        async def parse(page_url: str) -> PageResult:
            return await parse_article(page_url, fetch=fetch)

    if find_next is None:
        async def find_next(page_url: str) -> Optional[str]:
            return await find_next_page(page_url, fetch=fetch, log=log)

    pages = await collect_pages(url, parse, find_next, max_pages=max_pages, log=log)
    log.info("Aggregator: merged %d page(s) for %s", len(pages), url)
    return render_markdown(pages, url)


async def extract_content_to_markdown(url: str, **kwargs) -> str:
    """Like :func:`extract` but never raises.

    Failures come back as a string starting with ``"Error: "``.
    """
    try:
        return await extract(url, **kwargs)
    except Exception as exc:
        logger.error("Error extracting content from %s: %s", url, exc)
        return f"{ERROR_PREFIX}{exc}"
