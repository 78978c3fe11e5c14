# Entrypoint for the seo_crawler package.
# This file makes the public API available to programmers.

from __future__ import annotations

from seo_crawler.__about__ import __version__
from seo_crawler.api import crawl_site, crawl_site_sync
from seo_crawler.crawler import SiteAnalyzer
from seo_crawler.errors import ConfigError, FetchError, ParseError, UrlParseError
from seo_crawler.link_logic import classify
from seo_crawler.models import CrawlResult, PageLink, PageResult, RuleResult
from seo_crawler.page import Page
from seo_crawler.rules import PagePlugin, PluginRegistry, Rule, RuleConfig, SitePlugin, SiteRule
from seo_crawler.sitemap import SitemapResolver

__all__ = [
    "crawl_site",
    "crawl_site_sync",
    "classify",
    "ConfigError",
    "CrawlResult",
    "FetchError",
    "Page",
    "PageLink",
    "PagePlugin",
    "PageResult",
    "ParseError",
    "PluginRegistry",
    "Rule",
    "RuleConfig",
    "RuleResult",
    "SiteAnalyzer",
    "SitemapResolver",
    "SitePlugin",
    "SiteRule",
    "UrlParseError",
    "__version__",
]
