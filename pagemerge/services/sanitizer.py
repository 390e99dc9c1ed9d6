"""Noise removal on a parsed page before its article body is converted to Markdown."""

import re

from bs4 import BeautifulSoup, Comment, Tag

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree should be removed (non-content / binary / scripting)
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "link",
    "meta",
    "svg",
    "canvas",
    "template",
    "form",
    "button",
}

# HTML attributes that carry CSS or JavaScript
_JUNK_ATTRS = re.compile(r"^(style|on\w+)$", re.IGNORECASE)

# Class / id fragments that mark non-article elements. Pagination widgets are
# dropped here too: the locator reads them from the raw HTML, and their
# "1 2 3 Next" text would otherwise end up in every page's body.
_NOISE_KEYWORDS = (
    "nav",
    "menu",
    "sidebar",
    "banner",
    "popup",
    "modal",
    "cookie",
    "gdpr",
    "advert",
    "sponsor",
    "site-header",
    "site-footer",
    "breadcrumb",
    "pagination",
    "pager",
    "page-links",
    "social",
    "share",
    "related",
    "recommend",
    "subscribe",
    "newsletter",
    "promo",
    "comment",
    "widget",
    "author-bio",
    "author-box",
)

# Structural tags that never belong to an article body
_NOISE_TAGS = {"nav", "aside"}

# Page chrome when outside an article, but part of it inside one
_CHROME_TAGS = {"header", "footer"}


def _has_noise_attr(tag: Tag) -> bool:
    """Return True when a tag's id or class suggests it is non-content."""
    if not tag.attrs:
        return False
    values = []
    if tag.get("id"):
        values.append(str(tag["id"]).lower())
    for cls in tag.get("class") or []:
        values.append(cls.lower())
    return any(keyword in value for value in values for keyword in _NOISE_KEYWORDS)


def sanitize(html: str) -> BeautifulSoup:
    """Remove noise elements from *html* and return the cleaned BeautifulSoup tree."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        # A decomposed ancestor leaves its descendants in the result list
        if tag.decomposed:
            continue
        if tag.name in _CHROME_TAGS and tag.find_parent(["article", "main"]) is None:
            tag.decompose()
            continue
        if tag.name in _NOISE_TAGS or _has_noise_attr(tag):
            # Never drop the document skeleton even if a theme tags it oddly
            if tag.name not in ("html", "body", "main", "article"):
                tag.decompose()
                continue
        inline_style = tag.get("style", "")
        if inline_style and _HIDDEN_STYLE_RE.search(inline_style):
            tag.decompose()
            continue
        junk = [attr for attr in tag.attrs if _JUNK_ATTRS.match(attr)]
        for attr in junk:
            del tag[attr]

    return soup
