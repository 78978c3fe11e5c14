# seo_crawler/page.py
"""
The Page capability consumed by rule checks and by the crawler.

A Page is either fetched over HTTP(S) with httpx (`Page.fetch`) or wrapped
around raw markup (`Page.from_markup`). Parsed accessors are computed lazily
from a BeautifulSoup tree and memoized on the instance.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup, Tag

from seo_crawler.cache import FileCache
from seo_crawler.errors import FetchError, ParseError
from seo_crawler.link_logic import classify, extract_hrefs
from seo_crawler.models import Link

log = logging.getLogger(__name__)

# Used as the base for link resolution when a page has no URL of its own.
FALLBACK_URL = "https://example.com/"


@dataclass
class MetaTags:
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    robots: Optional[str] = None
    canonical: Optional[str] = None
    sitemap: Optional[str] = None
    favicon: Optional[str] = None
    viewport: Optional[str] = None
    webmanifest: Optional[str] = None
    charset: Optional[str] = None
    generators: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    og_tags: Dict[str, str] = field(default_factory=dict)
    twitter_tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Image:
    src: str
    alt: Optional[str] = None
    srcset: Optional[str] = None


def _rel(tag: Tag) -> str:
    rel = tag.get("rel")
    if not rel:
        return ""
    if isinstance(rel, str):
        return rel.strip().lower()
    return " ".join(r.strip().lower() for r in rel if isinstance(r, str))


def _attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


class Page:
    def __init__(
        self,
        html: str,
        *,
        url: Optional[str] = None,
        final_url: Optional[str] = None,
        status_code: Optional[int] = None,
        redirected: bool = False,
        content_length: Optional[int] = None,
        elapsed_ms: Optional[float] = None,
    ) -> None:
        self.url = url
        self.html = html
        self.final_url = final_url or url
        self.status_code = status_code
        self.redirected = redirected
        self.content_length = content_length
        self.elapsed_ms = elapsed_ms
        self._soup: BeautifulSoup | None = None
        self._meta: MetaTags | None = None
        self._images: List[Image] | None = None

    def __repr__(self) -> str:
        return f"Page(url={self.url!r}, status_code={self.status_code!r})"

    # ---- Construction -------------------------------------------------------

    @classmethod
    def from_markup(cls, html: str, url: Optional[str] = None) -> "Page":
        return cls(html, url=url, content_length=len(html.encode("utf-8")))

    @classmethod
    async def fetch(
        cls, url: str, client: httpx.AsyncClient, cache: FileCache | None = None
    ) -> "Page":
        """
        GET `url` and wrap the body. Raises FetchError on network failure or a
        non-2xx final status. The client is expected to follow redirects; a page
        reached through at least one 3xx hop reports `redirected=True`.
        """
        if cache is not None:
            hit = cache.get(url)
            if hit and 200 <= int(hit.get("status", 0)) < 300 and hit.get("text"):
                log.debug("Cache hit for %s", url)
                text = hit["text"]
                return cls(
                    text,
                    url=url,
                    final_url=hit.get("final_url"),
                    status_code=hit.get("status"),
                    redirected=bool(hit.get("redirected", False)),
                    content_length=len(text.encode("utf-8")),
                    elapsed_ms=hit.get("elapsed_ms"),
                )

        start = time.perf_counter()
        try:
            resp = await client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.warning("Non-2xx response for %s: %d", url, status)
            raise FetchError(url, f"HTTP {status}", status_code=status) from e
        except httpx.RequestError as e:
            log.warning("Network error fetching %s: %s", url, e)
            raise FetchError(url, f"network error: {e}") from e
        except httpx.InvalidURL as e:
            raise FetchError(url, f"invalid URL: {e}") from e
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        redirected = bool(resp.history)
        # Report the first hop's status for redirected pages.
        status_code = resp.history[0].status_code if redirected else resp.status_code
        header_length = resp.headers.get("content-length")
        if header_length and header_length.isdigit():
            content_length = int(header_length)
        else:
            content_length = len(resp.content)

        text = resp.text
        if cache is not None:
            cache.set_page(
                url,
                final_url=str(resp.url),
                status=resp.status_code,
                redirected=redirected,
                headers=dict(resp.headers),
                text=text,
                content_type=resp.headers.get("content-type", ""),
                elapsed_ms=elapsed_ms,
            )

        return cls(
            text,
            url=url,
            final_url=str(resp.url),
            status_code=status_code,
            redirected=redirected,
            content_length=content_length,
            elapsed_ms=elapsed_ms,
        )

    # ---- Parsed accessors ---------------------------------------------------

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            try:
                self._soup = BeautifulSoup(self.html or "", "html.parser")
            except Exception as e:
                raise ParseError(f"Failed to parse HTML for {self.url}: {e}") from e
        return self._soup

    @property
    def base_url(self) -> str:
        return self.url or FALLBACK_URL

    def html_lang(self) -> Optional[str]:
        html = self.soup.find("html")
        if not isinstance(html, Tag):
            return None
        return _attr(html, "lang")

    def extract_meta_tags(self) -> MetaTags:
        if self._meta is not None:
            return self._meta

        meta = MetaTags()
        title = self.soup.find("title")
        if isinstance(title, Tag):
            meta.title = title.get_text().strip()

        for link in self.soup.find_all("link"):
            rel = _rel(link)
            href = _attr(link, "href")
            if not rel or href is None:
                continue
            if rel == "canonical":
                meta.canonical = href
            elif rel == "sitemap":
                meta.sitemap = href
            elif rel in ("icon", "shortcut icon"):
                meta.favicon = href
            elif rel == "manifest":
                meta.webmanifest = href
            elif rel == "stylesheet":
                meta.styles.append(href)

        for tag in self.soup.find_all("meta"):
            name = (_attr(tag, "name") or "").lower()
            content = _attr(tag, "content")
            if name == "description":
                meta.description = content
            elif name == "robots":
                meta.robots = content
            elif name == "keywords":
                meta.keywords = content
            elif name == "viewport":
                meta.viewport = content
            elif name == "generator" and content is not None:
                meta.generators.append(content)

            charset = _attr(tag, "charset")
            if charset:
                meta.charset = charset

            prop = (_attr(tag, "property") or name).lower()
            if content is not None:
                if prop.startswith("og:"):
                    meta.og_tags[prop[3:]] = content
                elif prop.startswith("twitter:"):
                    meta.twitter_tags[prop[8:]] = content

        self._meta = meta
        return meta

    def extract_images(self) -> List[Image]:
        if self._images is None:
            self._images = [
                Image(
                    src=_attr(img, "src") or "",
                    alt=_attr(img, "alt"),
                    srcset=_attr(img, "srcset"),
                )
                for img in self.soup.find_all("img")
            ]
        return list(self._images)

    def extract_hrefs(self) -> List[str]:
        return extract_hrefs(self.soup)

    def extract_links(self) -> List[Link]:
        """Every anchor href, resolved and classified against this page's URL."""
        base = self.base_url
        return [classify(href, base) for href in self.extract_hrefs()]
