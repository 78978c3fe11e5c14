# seo_crawler/api.py
# The primary, programmer-facing API for the library.

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import httpx

from seo_crawler.config import CrawlSettings, build_rule_config, load_config
from seo_crawler.crawler import ProgressCallback, SiteAnalyzer
from seo_crawler.models import CrawlResult
from seo_crawler.rules import PluginRegistry, RuleInfo

log = logging.getLogger(__name__)


async def crawl_site(
    base_url: str,
    *,
    max_concurrent_requests: int | None = None,
    request_delay_ms: int | None = None,
    disabled_rules: List[str] | None = None,
    registry: PluginRegistry | None = None,
    progress_callback: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    pyproject_path: Path | None = None,
) -> CrawlResult:
    """
    Crawl `base_url` and evaluate every enabled SEO rule.

    Args:
        base_url: The absolute http(s) URL to start from.
        max_concurrent_requests: Override the worker width per pass.
        request_delay_ms: Override the fixed delay before each page fetch.
        disabled_rules: Rule ids to switch off on top of the configured ones.
        registry: A custom plugin registry. Defaults to every built-in plugin.
            If it carries no RuleConfig, one is built from the configuration.
        progress_callback: Called after each discovered link, processed page,
            completed pass and the final site evaluation.
        cancel_event: Set it to abandon the crawl between passes.
        transport: Optional httpx transport (tests use httpx.MockTransport).
        pyproject_path: Where to look for [tool.seo_crawler] settings.

    Returns:
        The CrawlResult snapshot.

    Raises:
        UrlParseError: if `base_url` is not an absolute http(s) URL.
    """
    log.info("Starting new site analysis for: %s", base_url)

    config = load_config(pyproject_path)
    if max_concurrent_requests is not None:
        config["max_concurrent_requests"] = max_concurrent_requests
        log.info("Applied override - max_concurrent_requests: %d", max_concurrent_requests)
    if request_delay_ms is not None:
        config["request_delay_ms"] = request_delay_ms
        log.info("Applied override - request_delay_ms: %d", request_delay_ms)
    if disabled_rules:
        config["disabled_rules"] = list(config.get("disabled_rules", [])) + list(
            disabled_rules
        )
        log.info("Applied override - disabled rules: %s", disabled_rules)

    if registry is None:
        registry = PluginRegistry.default()
    if registry.config is None:
        registry.set_config(build_rule_config(registry, config))

    analyzer = SiteAnalyzer(
        base_url,
        registry=registry,
        settings=CrawlSettings.from_config(config),
        progress_callback=progress_callback,
        cancel_event=cancel_event,
        transport=transport,
    )
    async with analyzer:
        result = await analyzer.crawl()

    log.info(
        "Analysis complete: %d node(s), %d site result(s)",
        result.total_pages,
        len(result.site_result),
    )
    return result


def crawl_site_sync(base_url: str, **kwargs) -> CrawlResult:
    """Blocking wrapper around `crawl_site` for scripts."""
    return asyncio.run(crawl_site(base_url, **kwargs))


def list_rules(registry: Optional[PluginRegistry] = None) -> List[RuleInfo]:
    """Every rule the (default) registry can run."""
    return (registry or PluginRegistry.default()).get_available_rules()
