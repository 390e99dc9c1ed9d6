"""Next-page discovery for multi-page articles.

:func:`find_next_page` fetches a page's raw HTML and runs an ordered chain of
strategies over it; the first strategy that returns a URL wins:

1. :func:`explicit_next_link` - the first ``<a>`` whose text mentions "next"
   (or one of the configured markers such as ``次へ`` or ``→``), or whose
   ``rel`` is exactly ``next``.
2. :func:`numbered_pagination_link` - inside a pagination container, the link
   right after the element marked as the current page.

The locator never raises. Any failure means "no next page".
"""

import logging
from typing import Callable, Iterable, Optional, Sequence
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from pagemerge.errors import FetchError
from pagemerge.services.fetcher import Fetcher, fetch_url

logger = logging.getLogger(__name__)

# Substrings (matched against lower-cased link text) that mark a "next" link.
# "next" itself is always checked; these extend it to other scripts and glyphs.
DEFAULT_NEXT_MARKERS = ("次へ", "次ページ", "→", "▶")

_PAGINATION_CONTAINERS = '.pagination, [aria-label*="pag"], nav'
_CURRENT_PAGE_MARKERS = '.current, .active, [aria-current="page"]'


class UnresolvableHref(ValueError):
    """A chosen link's ``href`` cannot be turned into an absolute URL."""


class PageContext:
    """A parsed page together with the base used to resolve its links."""

    def __init__(self, url: str, soup: BeautifulSoup, markers: Sequence[str]) -> None:
        self.url = url
        self.soup = soup
        self.markers = tuple(m.lower() for m in markers)

        base_tag = soup.select_one("base[href]")
        base_href = str(base_tag["href"]).strip() if base_tag else ""
        self.base_url = urljoin(url, base_href) if base_href else url

    def resolve(self, href: str) -> str:
        """Resolve *href* against the page's ``<base>`` (or its own URL)."""
        try:
            absolute = urljoin(self.base_url, href.strip())
            parsed = urlparse(absolute)
            # Accessing .port validates the netloc ("host:abc" raises ValueError)
            parsed.port
        except ValueError as exc:
            raise UnresolvableHref(href) from exc
        if parsed.scheme in ("http", "https") and not parsed.hostname:
            raise UnresolvableHref(href)
        return absolute


Strategy = Callable[[PageContext], Optional[str]]


def _is_next_link(link: Tag, markers: Iterable[str]) -> bool:
    text = link.get_text().lower()
    if "next" in text or any(marker in text for marker in markers):
        return True
    # bs4 exposes rel as a list of tokens
    rel = link.get("rel")
    if isinstance(rel, list):
        return rel == ["next"]
    return rel == "next"


def explicit_next_link(page: PageContext) -> Optional[str]:
    """Return the target of the first link that reads or is marked as "next"."""
    for link in page.soup.find_all("a"):
        if _is_next_link(link, page.markers):
            if not link.has_attr("href"):
                # Only the first candidate counts; without a target, fall through
                return None
            return page.resolve(str(link["href"]))
    return None


def _is_pager(container: Tag) -> bool:
    """True for explicit pagination widgets, as opposed to a generic ``<nav>``."""
    classes = container.get("class") or []
    return "pagination" in classes or "pag" in str(container.get("aria-label") or "").lower()


def _link_after(marker: Tag, lift_list_items: bool) -> Optional[Tag]:
    """Return the ``<a href>`` immediately following *marker* as a sibling.

    With *lift_list_items*, a marker alone in an ``<li>`` is replaced by the
    item and a following ``<li>`` contributes its first link. Menus in a plain
    ``<nav>`` share that markup, so there only a bare sibling link counts.
    """
    if (
        lift_list_items
        and marker.find_next_sibling() is None
        and marker.parent is not None
        and marker.parent.name == "li"
    ):
        marker = marker.parent

    # find_next_sibling skips the whitespace text nodes between elements, so
    # both element and node adjacency land on the same neighbour
    following = marker.find_next_sibling()
    if following is None:
        return None
    if following.name == "a":
        return following if following.has_attr("href") else None
    if lift_list_items and following.name == "li":
        return following.select_one("a[href]")
    return None


def numbered_pagination_link(page: PageContext) -> Optional[str]:
    """Return the link after the current page inside a pagination container."""
    for container in page.soup.select(_PAGINATION_CONTAINERS):
        current = container.select_one(_CURRENT_PAGE_MARKERS)
        if current is None:
            continue
        link = _link_after(current, lift_list_items=_is_pager(container))
        if link is not None and link is not current:
            return page.resolve(str(link["href"]))
    return None


STRATEGIES: Sequence[Strategy] = (explicit_next_link, numbered_pagination_link)


def locate_next(
    html: str,
    url: str,
    markers: Sequence[str] = DEFAULT_NEXT_MARKERS,
    strategies: Sequence[Strategy] = STRATEGIES,
) -> Optional[str]:
    """Run *strategies* over *html* in order and return the first hit.

    Raises:
        UnresolvableHref: if the winning link's href is malformed. The chain
            stops there rather than trying the remaining strategies.
    """
    page = PageContext(url, BeautifulSoup(html, "lxml"), markers)
    for strategy in strategies:
        candidate = strategy(page)
        if candidate:
            return candidate
    return None


async def _fetch_html(url: str, fetch: Fetcher) -> str:
    try:
        return await fetch(url)
    except Exception as exc:
        # Any fetch failure means "no next page"
        raise FetchError(url, str(exc) or exc.__class__.__name__) from exc


async def find_next_page(
    url: str,
    fetch: Fetcher = fetch_url,
    markers: Sequence[str] = DEFAULT_NEXT_MARKERS,
    strategies: Sequence[Strategy] = STRATEGIES,
    log: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Return the absolute URL of the page following *url*, or ``None``."""
    log = log or logger

    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            raise ValueError("missing scheme or host")
    except ValueError:
        log.error("Pagination: invalid URL %r", url)
        return None

    try:
        html = await _fetch_html(url, fetch)
    except FetchError as exc:
        log.warning("Pagination: %s", exc)
        return None

    try:
        next_url = locate_next(html, url, markers=markers, strategies=strategies)
    except UnresolvableHref as exc:
        log.warning("Pagination: cannot build a URL from href %r on %s", str(exc), url)
        return None
    except Exception:
        log.exception("Pagination: failed to inspect %s", url)
        return None

    if next_url:
        log.debug("Pagination: %s -> %s", url, next_url)
    return next_url
