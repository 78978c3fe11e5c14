# seo_crawler/link_logic.py
"""
Link resolution and classification.

All href handling lives here so the crawler, the sitemap resolver and the
Page accessors agree on one notion of URL identity:

- `classify(href, base)` resolves an href against a base URL and tags it
  internal / external / mailto / tel / unknown.
- `clean_url(url)` strips query string and fragment; the link graph keys
  every node by this form.

Everything in this module is pure: no I/O, deterministic for equal input.
"""
from __future__ import annotations

import logging
import re
from typing import List
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from seo_crawler.errors import UrlParseError
from seo_crawler.models import Link, LinkType

log = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}

# RFC 3986 scheme prefix ("https:", "mailto:", "tel:", ...)
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


def _scheme(u: str) -> str:
    try:
        return urlsplit(u).scheme.lower()
    except ValueError:
        return ""


def is_fetchable_url(u: str) -> bool:
    """Return True iff URL uses a scheme we can actually fetch (http/https)."""
    return _scheme(u) in ALLOWED_SCHEMES


def hostname(u: str) -> str:
    try:
        return (urlsplit(u).hostname or "").lower()
    except ValueError:
        return ""


def parse_base_url(url: str) -> str:
    """
    Validate a crawl base URL and return its canonical form.
    Raises UrlParseError for anything that is not an absolute http(s) URL.
    """
    if not url or not url.strip():
        raise UrlParseError(url, "empty URL")
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError as e:
        raise UrlParseError(url, str(e)) from e
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise UrlParseError(url, f"unsupported scheme {parts.scheme!r}")
    if not host:
        raise UrlParseError(url, "missing host")
    return _canonical(parts)


def _canonical(parts: SplitResult) -> str:
    """Lowercase scheme and host; an empty http(s) path becomes "/"."""
    path = parts.path or "/"
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, parts.query, parts.fragment)
    )


def resolve_href(href: str, base: str) -> str:
    """
    Absolute hrefs (anything with a scheme prefix) are taken as-is; everything
    else is joined onto `base`. If joining fails, the base itself is returned.
    """
    href = (href or "").strip()
    if _SCHEME_RE.match(href):
        return href
    try:
        return urljoin(base, href)
    except ValueError:
        log.debug("Could not resolve %r against %s; using base", href, base)
        return base


def classify(href: str, base: str) -> Link:
    """
    Resolve `href` against `base` and tag it.

    Order: same host as base (http/https only) -> internal, mailto -> mailto,
    tel -> tel, other http/https -> external, anything else -> unknown.
    """
    base_host = hostname(base)
    resolved = resolve_href(href, base)
    try:
        parts = urlsplit(resolved)
        host = (parts.hostname or "").lower()
    except ValueError:
        return Link(href=resolved, path="", link_type="unknown")

    scheme = parts.scheme.lower()
    link_type: LinkType
    if scheme in ALLOWED_SCHEMES:
        resolved = _canonical(parts)
        path = parts.path or "/"
        if host and host == base_host:
            link_type = "internal"
        elif host:
            link_type = "external"
        else:
            link_type = "unknown"
    else:
        path = parts.path
        if scheme == "mailto":
            link_type = "mailto"
        elif scheme == "tel":
            link_type = "tel"
        else:
            link_type = "unknown"

    return Link(href=resolved, path=path, link_type=link_type)


def clean_url(url: str) -> str:
    """Drop query string and fragment. Graph identity is always this form."""
    url = url.split("#", 1)[0]
    return url.split("?", 1)[0]


# ---------- Link extraction ----------


def extract_href_elements(soup: BeautifulSoup) -> List[Tag]:
    """Return every <a> element that carries an href, in document order."""
    return list(soup.find_all("a", href=True))


def extract_hrefs(soup: BeautifulSoup) -> List[str]:
    out: List[str] = []
    for el in extract_href_elements(soup):
        href = el.get("href")
        if isinstance(href, str) and href.strip():
            out.append(href.strip())
    return out
