"""HTML download for article pages.

Every page the aggregator visits comes through :func:`fetch_url`, including
pages reached via pagination links taken from untrusted markup. Each hop of a
redirect chain is therefore checked against the same rules as the first URL
before any connection is made to it.
"""

import ipaddress
import logging
import socket
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urljoin, urlparse

import httpx

from pagemerge.config import settings

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024 * 1024
MAX_HOPS = 10
FETCHABLE_SCHEMES = frozenset({"http", "https"})

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; Pagemerge/1.0; multi-page article extractor)",
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

Fetcher = Callable[[str], Awaitable[str]]


def _points_inside_network(hostname: str) -> bool:
    """Whether any address *hostname* resolves to is non-public.

    Unresolvable names count as public here; the request itself will fail.
    """
    try:
        resolved = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for _family, _type, _proto, _canon, sockaddr in resolved:
        # "fe80::1%eth0" carries a scope suffix ip_address() rejects
        host = sockaddr[0].partition("%")[0]
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            continue
        if not ip.is_global or ip.is_reserved:
            return True
    return False


def check_target(url: str) -> None:
    """Refuse *url* unless it is an http(s) URL for a public host.

    Raises:
        ValueError: naming the rule *url* broke.
    """
    target = urlparse(url)
    if target.scheme not in FETCHABLE_SCHEMES:
        raise ValueError(f"Refusing to fetch {url!r}: scheme must be http or https.")
    if not target.hostname:
        raise ValueError(f"Refusing to fetch {url!r}: no host name.")
    if _points_inside_network(target.hostname):
        raise ValueError(f"Refusing to fetch {url!r}: host is on a private network.")


async def _read_body(response: httpx.Response) -> str:
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise RuntimeError(f"Page is {declared} bytes, limit is {MAX_BODY_BYTES}.")

    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > MAX_BODY_BYTES:
            raise RuntimeError(f"Page exceeds the {MAX_BODY_BYTES} byte limit.")
    return body.decode(response.encoding or "utf-8", errors="replace")


async def fetch_url(url: str, timeout: Optional[float] = None) -> str:
    """Download *url* and return its decoded HTML.

    Raises:
        ValueError: *url*, or a redirect target, fails :func:`check_target`.
        httpx.HTTPError: transport failures and non-2xx responses.
        RuntimeError: oversized body or more than ``MAX_HOPS`` redirects.
    """
    check_target(url)

    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=timeout or settings.fetch_timeout,
        headers=_HEADERS,
    ) as client:
        location = url
        for _ in range(MAX_HOPS + 1):
            async with client.stream("GET", location) as response:
                if not response.is_redirect:
                    response.raise_for_status()
                    return await _read_body(response)

                hop = urljoin(location, response.headers.get("location", ""))
                check_target(hop)
                logger.debug("Fetcher: %s redirected to %s", location, hop)
                location = hop

    raise RuntimeError(f"Gave up on {url} after {MAX_HOPS} redirects.")


def cached_fetcher(fetch: Fetcher = fetch_url) -> Fetcher:
    """Memoise *fetch* by URL for the lifetime of the returned callable.

    The aggregator builds one per run so the parser and the pagination
    locator download each page once between them. Exceptions pass through
    uncached, so a retry within the run hits the network again.
    """
    pages: Dict[str, str] = {}

    async def _fetch(url: str) -> str:
        if url not in pages:
            pages[url] = await fetch(url)
        else:
            logger.debug("Fetcher: cache hit for %s", url)
        return pages[url]

    return _fetch
