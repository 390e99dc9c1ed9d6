"""Tests for pagemerge.services.pagination.

The heuristics are exercised through :func:`locate_next` on static HTML; the
async :func:`find_next_page` wrapper is tested with a mocked fetcher so no
network access is needed.
"""

import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from pagemerge.services.pagination import (
    UnresolvableHref,
    explicit_next_link,
    find_next_page,
    locate_next,
    numbered_pagination_link,
)

_URL = "https://example.com/articles/story?page=1"


def _html(body: str, head: str = "") -> str:
    return f"<!DOCTYPE html><html><head>{head}</head><body>{body}</body></html>"


_NUMBERED = """
<div class="pagination">
  <a href="/articles/story?page=1" class="current">1</a>
  <a href="/articles/story?page=2">2</a>
  <a href="/articles/story?page=3">3</a>
</div>
"""


# ---------------------------------------------------------------------------
# Strategy 1: explicit "next" link
# ---------------------------------------------------------------------------

class TestExplicitNextLink:
    def test_next_text_case_insensitive(self):
        html = _html('<p>Intro</p><a href="/articles/story?page=2">NEXT PAGE</a>')
        assert locate_next(html, _URL) == "https://example.com/articles/story?page=2"

    def test_rel_next(self):
        html = _html('<a href="/p/2" rel="next">2</a>')
        assert locate_next(html, _URL) == "https://example.com/p/2"

    def test_rel_with_extra_tokens_is_not_exact(self):
        html = _html('<a href="/p/2" rel="next nofollow">2</a>')
        assert locate_next(html, _URL) is None

    def test_japanese_next_marker(self):
        html = _html('<a href="page2.html">次へ</a>')
        assert locate_next(html, _URL) == "https://example.com/articles/page2.html"

    def test_japanese_next_page_marker(self):
        html = _html('<a href="page2.html">次ページ</a>')
        assert locate_next(html, _URL) == "https://example.com/articles/page2.html"

    def test_arrow_glyphs(self):
        assert locate_next(_html('<a href="/b">→</a>'), _URL) == "https://example.com/b"
        assert locate_next(_html('<a href="/c">▶</a>'), _URL) == "https://example.com/c"

    def test_first_qualifying_link_wins(self):
        html = _html('<a href="/first">Next</a><a href="/second" rel="next">2</a>')
        assert locate_next(html, _URL) == "https://example.com/first"

    def test_markers_are_configurable(self):
        html = _html('<a href="/weiter">Weiter</a>')
        assert locate_next(html, _URL) is None
        assert locate_next(html, _URL, markers=("weiter",)) == "https://example.com/weiter"

    def test_base_href_used_for_resolution(self):
        html = _html('<a href="page2">Next</a>', head='<base href="https://cdn.example.org/mirror/">')
        assert locate_next(html, _URL) == "https://cdn.example.org/mirror/page2"

    def test_relative_base_href_resolved_against_page(self):
        html = _html('<a href="p2">Next</a>', head='<base href="/static/">')
        assert locate_next(html, _URL) == "https://example.com/static/p2"

    def test_absolute_href_kept(self):
        html = _html('<a href="https://other.example.net/2">next</a>')
        assert locate_next(html, _URL) == "https://other.example.net/2"

    def test_first_match_without_href_falls_through_to_numbered(self):
        html = _html('<a name="next-anchor">Next</a>' + _NUMBERED)
        assert locate_next(html, _URL) == "https://example.com/articles/story?page=2"

    def test_no_links_returns_none(self):
        assert locate_next(_html("<p>Just one page.</p>"), _URL) is None


# ---------------------------------------------------------------------------
# Strategy 2: numbered pagination
# ---------------------------------------------------------------------------

class TestNumberedPagination:
    def test_link_after_current_marker(self):
        assert locate_next(_html(_NUMBERED), _URL) == "https://example.com/articles/story?page=2"

    def test_aria_current_inside_nav(self):
        html = _html(
            '<nav aria-label="Pagination">'
            '<a href="/s/1">1</a>'
            '<span aria-current="page">2</span>'
            '<a href="/s/3">3</a>'
            "</nav>"
        )
        assert locate_next(html, _URL) == "https://example.com/s/3"

    def test_list_items_with_active_class(self):
        html = _html(
            '<ul class="pagination">'
            '<li><a href="/s/1">1</a></li>'
            '<li class="active"><span>2</span></li>'
            '<li><a href="/s/3">3</a></li>'
            "</ul>"
        )
        assert locate_next(html, _URL) == "https://example.com/s/3"

    def test_current_link_nested_in_list_item(self):
        html = _html(
            '<ul class="pagination">'
            '<li><a href="/s/1" class="current">1</a></li>'
            '<li><a href="/s/2">2</a></li>'
            "</ul>"
        )
        assert locate_next(html, _URL) == "https://example.com/s/2"

    def test_navbar_menu_is_not_pagination(self):
        html = _html(
            '<nav class="navbar"><ul>'
            '<li class="nav-item active"><a href="/blog">Blog</a></li>'
            '<li class="nav-item"><a href="/about">About</a></li>'
            "</ul></nav>"
            "<article><p>A single-page story.</p></article>"
        )
        assert locate_next(html, "https://example.com/blog/story") is None

    def test_navbar_active_link_in_list_item_is_not_pagination(self):
        html = _html(
            "<nav><ul>"
            '<li><a href="/blog" class="active">Blog</a></li>'
            '<li><a href="/about">About</a></li>'
            "</ul></nav>"
        )
        assert locate_next(html, "https://example.com/blog/story") is None

    def test_bare_sibling_link_inside_nav_still_counts(self):
        html = _html('<nav><span class="current">1</span> <a href="/s/2">2</a></nav>')
        assert locate_next(html, _URL) == "https://example.com/s/2"

    def test_pagination_list_inside_navbar_found_after_menu(self):
        html = _html(
            "<nav><ul>"
            '<li class="active"><a href="/home">Home</a></li>'
            '<li><a href="/about">About</a></li>'
            "</ul></nav>"
            '<ul class="pagination">'
            '<li class="active"><span>1</span></li>'
            '<li><a href="/s/2">2</a></li>'
            "</ul>"
        )
        assert locate_next(html, _URL) == "https://example.com/s/2"

    def test_last_page_has_no_successor(self):
        html = _html(
            '<div class="pagination">'
            '<a href="/s/1">1</a>'
            '<a href="/s/2" class="current">2</a>'
            "</div>"
        )
        assert locate_next(html, _URL) is None

    def test_pagination_without_current_marker(self):
        html = _html('<div class="pagination"><a href="/s/1">1</a><a href="/s/2">2</a></div>')
        assert locate_next(html, _URL) is None

    def test_next_link_preferred_over_numbered(self):
        html = _html(_NUMBERED + '<a href="/articles/story?page=9">Next →</a>')
        assert locate_next(html, _URL) == "https://example.com/articles/story?page=9"

    def test_strategies_can_be_called_directly(self):
        from pagemerge.services.pagination import PageContext
        from bs4 import BeautifulSoup

        page = PageContext(_URL, BeautifulSoup(_html(_NUMBERED), "lxml"), ())
        assert explicit_next_link(page) is None
        assert numbered_pagination_link(page) == "https://example.com/articles/story?page=2"


# ---------------------------------------------------------------------------
# Malformed hrefs
# ---------------------------------------------------------------------------

class TestMalformedHref:
    def test_malformed_next_href_raises_from_locate(self):
        html = _html('<a href="http://[broken/2">Next</a>')
        with pytest.raises(UnresolvableHref):
            locate_next(html, _URL)

    def test_malformed_next_href_does_not_fall_back(self):
        html = _html('<a href="http://[broken/2">Next</a>' + _NUMBERED)
        with pytest.raises(UnresolvableHref):
            locate_next(html, _URL)


# ---------------------------------------------------------------------------
# find_next_page (async wrapper)
# ---------------------------------------------------------------------------

class TestFindNextPage:
    @pytest.mark.asyncio
    async def test_returns_resolved_candidate(self):
        fetch = AsyncMock(return_value=_html('<a href="?page=2">Next</a>'))
        result = await find_next_page(_URL, fetch=fetch)
        assert result == "https://example.com/articles/story?page=2"
        fetch.assert_awaited_once_with(_URL)

    @pytest.mark.asyncio
    async def test_fetch_error_means_no_candidate(self, caplog):
        fetch = AsyncMock(side_effect=httpx.ConnectError("boom"))
        with caplog.at_level(logging.WARNING):
            assert await find_next_page(_URL, fetch=fetch) is None
        assert "Failed to fetch" in caplog.text

    @pytest.mark.asyncio
    async def test_blocked_url_means_no_candidate(self):
        fetch = AsyncMock(side_effect=ValueError("Refusing to fetch 'http://10.0.0.5/': host is on a private network."))
        assert await find_next_page(_URL, fetch=fetch) is None

    @pytest.mark.asyncio
    async def test_invalid_url_skips_fetch(self):
        fetch = AsyncMock()
        assert await find_next_page("not a url", fetch=fetch) is None
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_href_means_no_candidate(self):
        fetch = AsyncMock(return_value=_html('<a href="http://[broken/2">Next</a>' + _NUMBERED))
        assert await find_next_page(_URL, fetch=fetch) is None

    @pytest.mark.asyncio
    async def test_uses_injected_logger(self):
        log = logging.getLogger("test.pagination")
        fetch = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        records = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = _Collect()
        log.addHandler(handler)
        try:
            assert await find_next_page(_URL, fetch=fetch, log=log) is None
        finally:
            log.removeHandler(handler)

        assert records and records[0].levelno == logging.WARNING

    @pytest.mark.asyncio
    async def test_custom_strategy_chain(self):
        fetch = AsyncMock(return_value=_html('<a href="/x">Next</a>'))
        result = await find_next_page(
            _URL, fetch=fetch, strategies=(lambda page: "https://example.com/custom",)
        )
        assert result == "https://example.com/custom"

    @pytest.mark.asyncio
    async def test_invalid_url_from_httpx_means_no_candidate(self):
        fetch = AsyncMock(side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"))
        assert await find_next_page(_URL, fetch=fetch) is None

    @pytest.mark.asyncio
    async def test_unexpected_fetch_exception_means_no_candidate(self, caplog):
        fetch = AsyncMock(side_effect=KeyError("cookie"))
        with caplog.at_level(logging.WARNING):
            assert await find_next_page(_URL, fetch=fetch) is None
        assert "Failed to fetch" in caplog.text
