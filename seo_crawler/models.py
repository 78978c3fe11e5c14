# Defines the data structures shared by the crawler, the rule engine and the CLI.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Set, Union

LinkType = Literal["internal", "external", "mailto", "tel", "unknown"]
LinkSourceType = Literal["sitemap", "root", "link"]
Severity = Literal["info", "warning", "error", "critical"]
Category = Literal["accessibility", "performance", "best_practices", "seo"]
ProgressType = Literal["found_link", "analyzed_page", "completed_pass", "analyzed_site"]


@dataclass(frozen=True)
class Link:
    """A classified href: absolute form, its path, and how it relates to the base."""

    href: str
    path: str
    link_type: LinkType


@dataclass(frozen=True)
class LinkSource:
    """Provenance of a graph node: how it was found and from which URL."""

    source_type: LinkSourceType
    url: str


# --- Rule context: small tagged variant for structured evidence ---


@dataclass(frozen=True)
class EmptyContext:
    kind: Literal["empty"] = "empty"


@dataclass(frozen=True)
class UrlsContext:
    urls: List[str] = field(default_factory=list)
    kind: Literal["urls"] = "urls"


@dataclass(frozen=True)
class ValuesContext:
    values: Dict[str, List[str]] = field(default_factory=dict)
    kind: Literal["values"] = "values"


RuleContext = Union[EmptyContext, UrlsContext, ValuesContext]


@dataclass
class CheckResult:
    """What a rule's check function reports; the engine adds the metadata."""

    passed: bool
    message: str
    context: RuleContext = field(default_factory=EmptyContext)


@dataclass
class RuleResult:
    rule_id: str
    name: str
    plugin_name: str
    passed: bool
    message: str
    severity: Severity
    category: Category
    context: RuleContext = field(default_factory=EmptyContext)


@dataclass
class PageResult:
    error: bool
    rule_results: List[RuleResult] = field(default_factory=list)
    error_message: str = ""


@dataclass
class PageLink:
    """
    One node of the link graph.

    `url` is the query/fragment-stripped identity. `result` stays None until the
    page has been fetched and evaluated; it is the only "processed" marker.
    """

    url: str
    link_type: LinkType
    found_in: Set[LinkSource] = field(default_factory=set)
    result: Optional[PageResult] = None

    def copy(self) -> "PageLink":
        result = None
        if self.result is not None:
            result = PageResult(
                error=self.result.error,
                rule_results=list(self.result.rule_results),
                error_message=self.result.error_message,
            )
        return PageLink(
            url=self.url,
            link_type=self.link_type,
            found_in=set(self.found_in),
            result=result,
        )


@dataclass
class CrawlResult:
    """Terminal snapshot of one crawl."""

    page_results: List[PageLink] = field(default_factory=list)
    site_result: List[RuleResult] = field(default_factory=list)
    total_pages: int = 0
    cancelled: bool = False


@dataclass
class AnalysisProgress:
    progress_type: ProgressType
    url: Optional[str]
    total_pages: int
    completed_pages: int
    page: Optional[PageLink] = None
    site_results: List[RuleResult] = field(default_factory=list)
