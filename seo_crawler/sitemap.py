# seo_crawler/sitemap.py
"""
Sitemap discovery and recursive expansion.

State is a mapping from sitemap URL to either None ("queued, not fetched")
or the set of <loc> entries it listed. Each pass fetches every queued entry
concurrently; entries of a <sitemapindex> document are enqueued as new
sitemaps rather than returned as pages. The loop stops once no entry is
queued, which bounds sitemap-of-sitemap nesting of any depth.

Failures never propagate: a candidate that 404s, times out or is not XML
contributes an empty set.
"""
from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Set, Tuple

import httpx

from seo_crawler.cache import FileCache
from seo_crawler.errors import FetchError, ParseError
from seo_crawler.link_logic import classify, resolve_href
from seo_crawler.page import Page

log = logging.getLogger(__name__)

FALLBACK_SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
    "/sitemap/sitemap.xml",
)

SITEMAP_INDEX_MARKER = "<sitemapindex"


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def parse_sitemap_locs(xml_text: str, source: str = "") -> Set[str]:
    """
    Collect the text of every <loc> element, resolved against `source`.
    Malformed XML yields an empty set.
    """
    try:
        root = ET.fromstring(xml_text.strip())
    except ET.ParseError as exc:
        log.debug("Invalid XML in sitemap %s: %s", source, exc)
        return set()

    urls: Set[str] = set()
    for node in root.iter():
        if not isinstance(node.tag, str) or localname(node.tag) != "loc":
            continue
        text = (node.text or "").strip()
        if not text:
            continue
        urls.add(resolve_href(text, source) if source else text)
    return urls


def is_sitemap_index(xml_text: str) -> bool:
    return SITEMAP_INDEX_MARKER in xml_text


class SitemapResolver:
    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        *,
        cache: FileCache | None = None,
        max_concurrency: int = 8,
        max_sitemaps: int = 1000,
    ) -> None:
        self.base_url = base_url
        self.client = client
        self.cache = cache
        self.max_concurrency = max(1, max_concurrency)
        self.max_sitemaps = max_sitemaps
        self.sitemaps: Dict[str, Optional[Set[str]]] = {}

    async def resolve(self) -> Set[str]:
        """Return the union of page URLs listed by every reachable sitemap."""
        self.sitemaps = {}
        discovered = await self.discover_sitemap_url()
        if discovered:
            link = classify(discovered, self.base_url)
            log.info("Sitemap hint found on %s: %s", self.base_url, link.href)
            self.sitemaps[link.href] = None
        else:
            for path in FALLBACK_SITEMAP_PATHS:
                self.sitemaps[resolve_href(path, self.base_url)] = None

        sem = asyncio.Semaphore(self.max_concurrency)
        passes = 0
        while True:
            pending = [url for url, locs in self.sitemaps.items() if locs is None]
            if not pending:
                break
            passes += 1
            log.info("Sitemap pass %d: fetching %d document(s)", passes, len(pending))
            fetched = await asyncio.gather(
                *(self._fetch_bounded(sem, url) for url in pending)
            )
            for url, text in zip(pending, fetched):
                self._store(url, text)

        result: Set[str] = set()
        for locs in self.sitemaps.values():
            if locs:
                result |= locs
        log.info(
            "Resolved %d URL(s) from %d sitemap document(s)",
            len(result),
            len(self.sitemaps),
        )
        return result

    def locations(self) -> List[Tuple[str, str]]:
        """(page URL, sitemap document URL) pairs from the last `resolve()`."""
        pairs: List[Tuple[str, str]] = []
        for sitemap_url, locs in sorted(self.sitemaps.items()):
            for loc in sorted(locs or ()):
                pairs.append((loc, sitemap_url))
        return pairs

    async def discover_sitemap_url(self) -> Optional[str]:
        """Look for <link rel="sitemap"> on the base page."""
        try:
            page = await Page.fetch(self.base_url, self.client, self.cache)
            return page.extract_meta_tags().sitemap
        except (FetchError, ParseError) as e:
            log.info("Sitemap discovery on %s failed: %s", self.base_url, e)
            return None

    async def _fetch_bounded(self, sem: asyncio.Semaphore, url: str) -> Optional[str]:
        async with sem:
            return await self.fetch_text(url)

    async def fetch_text(self, url: str) -> Optional[str]:
        try:
            resp = await self.client.get(url)
            resp.raise_for_status()
            return resp.text
        except httpx.HTTPStatusError as e:
            log.info("Sitemap candidate %s: HTTP %d", url, e.response.status_code)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            log.warning("Sitemap candidate %s unreachable: %s", url, e)
        return None

    def _store(self, url: str, text: Optional[str]) -> None:
        if not text:
            self.sitemaps[url] = set()
            return
        locs = parse_sitemap_locs(text, source=url)
        if not is_sitemap_index(text):
            self.sitemaps[url] = locs
            return

        # Index entries are sitemaps themselves, not pages.
        self.sitemaps[url] = set()
        for loc in sorted(locs):
            if loc in self.sitemaps:
                continue
            if len(self.sitemaps) >= self.max_sitemaps:
                log.warning(
                    "Sitemap limit (%d) reached; ignoring %s", self.max_sitemaps, loc
                )
                continue
            self.sitemaps[loc] = None
