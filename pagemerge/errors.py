"""Error taxonomy for the extraction pipeline.

Errors stay structured inside the package and are only flattened into the
``"Error: ..."`` text result at the outer boundary
(:func:`pagemerge.services.aggregator.extract_content_to_markdown`).
"""


class PagemergeError(Exception):
    """Base class for every error raised by pagemerge."""


class InvalidUrlError(PagemergeError, ValueError):
    """The input is not a well-formed http/https URL."""


class FetchError(PagemergeError, RuntimeError):
    """Retrieving pagination HTML failed.

    Only ever raised inside the pagination locator, where it is downgraded to
    "no next page".
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ExtractionError(PagemergeError, RuntimeError):
    """The content extractor could not produce a page for *url*."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to extract content from {url}: {reason}")
        self.url = url
        self.reason = reason


class RenderError(PagemergeError):
    """Reserved for rendering failures; an empty page list is not one."""
