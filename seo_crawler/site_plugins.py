# seo_crawler/site_plugins.py
"""Built-in site-level plugins, evaluated once after the crawl converges."""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Sequence

from seo_crawler.models import CheckResult, RuleResult, UrlsContext, ValuesContext
from seo_crawler.page import Page
from seo_crawler.rules import SitePlugin, SiteRule, SiteState

log = logging.getLogger(__name__)

UNIQUENESS_THRESHOLD = 0.9


class MetaDescriptionSitePlugin(SitePlugin):
    """
    Collects every page's meta description through `after_page_hook` and
    checks that at least 90% of the non-empty ones are distinct.
    """

    plugin_id = "meta_description_uniqueness"
    name = "Meta Description Plugin"
    description = "Checks if meta descriptions are unique across pages"

    RULES = (
        SiteRule(
            id="meta_description_uniqueness",
            name="Meta Description Uniqueness",
            description="Checks if meta descriptions are unique 90% of the time",
            severity="warning",
            category="seo",
        ),
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._descriptions: Dict[str, str] = {}

    def available_rules(self) -> Sequence[SiteRule]:
        return self.RULES

    def reset(self) -> None:
        with self._lock:
            self._descriptions.clear()

    def record(self, url: str, description: str) -> None:
        with self._lock:
            self._descriptions[url] = description

    def after_page_hook(self, page: Page, results: Sequence[RuleResult]) -> None:
        description = (page.extract_meta_tags().description or "").strip()
        if description and page.url:
            self.record(page.url, description)

    def check(self, rule: SiteRule, site: SiteState) -> CheckResult:
        with self._lock:
            descriptions = dict(self._descriptions)

        by_description: Dict[str, List[str]] = {}
        for url, description in sorted(descriptions.items()):
            by_description.setdefault(description, []).append(url)
        duplicates = {d: urls for d, urls in by_description.items() if len(urls) > 1}

        total = len(descriptions)
        if total == 0:
            return CheckResult(passed=True, message="No meta descriptions collected")

        ratio = len(by_description) / total
        percent = round(ratio * 100, 1)
        if ratio < UNIQUENESS_THRESHOLD:
            return CheckResult(
                passed=False,
                message=f"Only {percent}% of meta descriptions are unique across pages",
                context=ValuesContext(values=duplicates),
            )
        return CheckResult(
            passed=True,
            message=f"{percent}% of meta descriptions are unique across pages",
            context=ValuesContext(values=duplicates),
        )


class OrphanedPagePlugin(SitePlugin):
    """Pages listed in a sitemap that no crawled page links to."""

    plugin_id = "orphaned_page"
    name = "OrphanedPage Plugin"
    description = "Check if pages are found only in sitemap but not in links"

    RULES = (
        SiteRule(
            id="orphaned_page.check",
            name="Orphaned Page",
            description="Check if pages are found only in sitemap but not in links",
            severity="warning",
            category="seo",
        ),
    )

    def available_rules(self) -> Sequence[SiteRule]:
        return self.RULES

    def check(self, rule: SiteRule, site: SiteState) -> CheckResult:
        orphaned = sorted(
            url
            for url, link in site.links.items()
            if link.found_in
            and all(src.source_type == "sitemap" for src in link.found_in)
        )
        return CheckResult(
            passed=not orphaned,
            message=f"Orphaned pages: {len(orphaned)}",
            context=UrlsContext(urls=orphaned),
        )


def default_site_plugins() -> List[SitePlugin]:
    return [MetaDescriptionSitePlugin(), OrphanedPagePlugin()]
