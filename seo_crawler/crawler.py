# seo_crawler/crawler.py
"""
Crawl orchestrator.

Responsibilities:
- Seed the link graph from the sitemap resolver and the root URL.
- Run convergence passes: snapshot every unprocessed internal node, process
  the batch with a bounded worker pool, repeat until a pass finds nothing new.
- Per page: fetch, run enabled page rules, feed site plugins, record the
  PageResult, then classify and upsert every anchor href.
- After convergence, run site rules once against the final graph.

A failure on one page is recorded as PageResult(error=True) and never
aborts the crawl. Only a malformed base URL stops a crawl from starting.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx

from seo_crawler.cache import FileCache
from seo_crawler.config import CrawlSettings
from seo_crawler.errors import ConfigError, FetchError, ParseError
from seo_crawler.graph import LinkGraph
from seo_crawler.link_logic import parse_base_url, resolve_href
from seo_crawler.models import (
    AnalysisProgress,
    CrawlResult,
    LinkSource,
    PageLink,
    PageResult,
    ProgressType,
    RuleResult,
    UrlsContext,
)
from seo_crawler.page import Page
from seo_crawler.rules import PluginRegistry, SiteState
from seo_crawler.sitemap import SitemapResolver

log = logging.getLogger(__name__)

ProgressCallback = Callable[[AnalysisProgress], None]


@dataclass
class SiteAnalyzer:
    """
    Crawl a site from `base_url` and evaluate the registry's rules.

    Use as an async context manager; the HTTP client and the optional response
    cache live for the duration of the `async with` block.
    """

    base_url: str
    registry: PluginRegistry = field(default_factory=PluginRegistry.default_with_config)
    settings: CrawlSettings = field(default_factory=CrawlSettings)
    progress_callback: Optional[ProgressCallback] = None
    # Set this event to abandon the crawl between passes / before page fetches.
    cancel_event: Optional[asyncio.Event] = None
    # Injected transport, mainly for tests (httpx.MockTransport).
    transport: Optional[httpx.AsyncBaseTransport] = None

    graph: LinkGraph = field(init=False, repr=False)
    _client: Optional[httpx.AsyncClient] = field(default=None, init=False, repr=False)
    _cache: Optional[FileCache] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        # Raises UrlParseError before any I/O happens.
        self.base_url = parse_base_url(self.base_url)
        self.graph = LinkGraph(self.base_url)

    async def __aenter__(self) -> "SiteAnalyzer":
        self._cache = FileCache(self.settings.cache)
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.settings.timeout,
            headers={"User-Agent": self.settings.user_agent},
            transport=self.transport,
        )
        log.info("httpx session initialized. Base: %s", self.base_url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._cache is not None:
            self._cache.close()
            self._cache = None
        log.info("httpx session closed.")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("SiteAnalyzer must be used inside 'async with'")
        return self._client

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    # ---- Crawl --------------------------------------------------------------

    async def crawl(self) -> CrawlResult:
        log.info("Starting crawl of %s", self.base_url)
        self.registry.reset_site_state()
        await self._seed_from_sitemap()
        await self._add_link(self.base_url, LinkSource("root", self.base_url))

        cancelled = False
        passes = 0
        while True:
            if self._cancelled():
                cancelled = True
                break
            batch = await self.graph.pending_internal()
            if not batch:
                break
            passes += 1
            log.info("Pass %d: processing %d page(s)", passes, len(batch))
            await self._run_pass(batch)
            await self._report("completed_pass")

        if cancelled:
            log.warning("Crawl of %s cancelled after %d pass(es)", self.base_url, passes)
            site_result: List[RuleResult] = []
        else:
            site_result = await self._analyze_site()

        links = await self.graph.snapshot()
        log.info(
            "Crawl finished: %d node(s), %d pass(es), %d site result(s)",
            len(links),
            passes,
            len(site_result),
        )
        return CrawlResult(
            page_results=[links[key] for key in sorted(links)],
            site_result=site_result,
            total_pages=len(links),
            cancelled=cancelled,
        )

    async def _seed_from_sitemap(self) -> None:
        resolver = SitemapResolver(
            self.base_url,
            self.client,
            cache=self._cache,
            max_concurrency=self.settings.sitemap_concurrency,
            max_sitemaps=self.settings.max_sitemaps,
        )
        await resolver.resolve()
        for loc, sitemap_url in resolver.locations():
            await self._add_link(loc, LinkSource("sitemap", sitemap_url))

    async def _run_pass(self, batch: List[str]) -> None:
        sem = asyncio.Semaphore(self.settings.max_concurrent_requests)

        async def run_one(url: str) -> None:
            async with sem:
                if self._cancelled():
                    return
                try:
                    await self._process_page(url)
                except Exception as e:
                    log.exception("Unexpected error while processing %s", url)
                    await self._record(
                        url,
                        PageResult(error=True, error_message=f"{type(e).__name__}: {e}"),
                    )

        await asyncio.gather(*(run_one(url) for url in batch))

    async def _process_page(self, url: str) -> None:
        delay = self.settings.request_delay_ms
        if delay:
            await asyncio.sleep(delay / 1000.0)

        try:
            page = await Page.fetch(url, self.client, self._cache)
            # Relative hrefs resolve against the page that holds them.
            page_url = page.final_url or url
            hrefs = [resolve_href(href, page_url) for href in page.extract_hrefs()]
        except (FetchError, ParseError) as e:
            log.warning("Page %s failed: %s", url, e)
            await self._record(url, PageResult(error=True, error_message=str(e)))
            return

        results = self.registry.analyze(page)
        self.registry.after_page(page, results)
        await self._record(url, PageResult(error=False, rule_results=results))

        for href in hrefs:
            await self._add_link(href, LinkSource("link", url))

    async def _analyze_site(self) -> List[RuleResult]:
        links = await self.graph.snapshot()
        site = SiteState.from_links(self.base_url, links)
        try:
            site_result = self.registry.analyze_site(site)
        except ConfigError as e:
            log.error("Site rules skipped: %s", e)
            return []

        # Attach URL-scoped site findings to the pages they name.
        for result in site_result:
            if isinstance(result.context, UrlsContext):
                for url in result.context.urls:
                    await self.graph.annotate(url, [result])

        await self._report("analyzed_site", site_results=site_result)
        return site_result

    # ---- Graph helpers ------------------------------------------------------

    async def _add_link(self, href: str, source: LinkSource) -> None:
        key, created = await self.graph.add_link(href, source)
        if created:
            await self._report("found_link", url=key)

    async def _record(self, url: str, result: PageResult) -> None:
        link = await self.graph.record_result(url, result)
        if link is not None:
            await self._report("analyzed_page", url=url, page=link)

    async def _report(
        self,
        progress_type: ProgressType,
        url: Optional[str] = None,
        page: Optional[PageLink] = None,
        site_results: Optional[List[RuleResult]] = None,
    ) -> None:
        if self.progress_callback is None:
            return
        total, completed = await self.graph.counts()
        progress = AnalysisProgress(
            progress_type=progress_type,
            url=url,
            total_pages=total,
            completed_pages=completed,
            page=page,
            site_results=list(site_results or []),
        )
        try:
            self.progress_callback(progress)
        except Exception:
            log.exception("Progress callback failed for %s", progress_type)
