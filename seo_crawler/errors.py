# seo_crawler/errors.py
"""
Exception taxonomy.

- UrlParseError: malformed base/seed URL. Fatal, raised before a crawl starts.
- FetchError: network or HTTP failure for a single resource. Recorded per page.
- ParseError: malformed HTML/XML. Callers treat the document as empty.
- ConfigError: the rule registry was asked to analyze without a RuleConfig,
  or a plugin was registered before its dependencies.
"""
from __future__ import annotations


class SeoCrawlerError(Exception):
    """Base class for all errors raised by seo_crawler."""


class UrlParseError(SeoCrawlerError):
    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        msg = f"Failed to parse URL: {url!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class FetchError(SeoCrawlerError):
    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class ParseError(SeoCrawlerError):
    pass


class ConfigError(SeoCrawlerError):
    pass
