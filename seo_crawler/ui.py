# seo_crawler/ui.py
# Presentation-only utilities for CLI output.
from __future__ import annotations

from typing import IO, Iterable

from seo_crawler.models import CrawlResult, RuleResult
from seo_crawler.rules import RuleInfo


def _writeln(text: str = "", *, file: IO[str]) -> None:
    file.write(text + "\n")


def _mark(result: RuleResult) -> str:
    return "PASS" if result.passed else "FAIL"


def render_crawl_header(url: str, *, file: IO[str]) -> None:
    _writeln(f"Crawling: {url}...", file=file)


def render_summary(result: CrawlResult, *, file: IO[str]) -> None:
    internal = [p for p in result.page_results if p.link_type == "internal"]
    processed = [p for p in internal if p.result is not None]
    errors = [p for p in processed if p.result is not None and p.result.error]
    _writeln("\n--- Summary ---", file=file)
    _writeln(f"Links in graph:   {result.total_pages}", file=file)
    _writeln(f"Internal pages:   {len(internal)}", file=file)
    _writeln(f"Pages analyzed:   {len(processed) - len(errors)}", file=file)
    _writeln(f"Pages with error: {len(errors)}", file=file)
    if result.cancelled:
        _writeln("Crawl was cancelled before completion.", file=file)


def render_page_section(result: CrawlResult, *, file: IO[str]) -> None:
    """Error pages are listed apart from pages that merely failed rules."""
    pages = [(p.url, p.result) for p in result.page_results if p.result is not None]
    if not pages:
        return
    _writeln("\n--- Pages ---", file=file)
    for url, page_result in pages:
        if page_result.error:
            _writeln(f"[ERROR] {url}  {page_result.error_message}", file=file)
            continue
        failed = [r for r in page_result.rule_results if not r.passed]
        _writeln(f"[{len(failed):>3} failed] {url}", file=file)
        for r in failed:
            _writeln(f"    - ({r.severity}) {r.rule_id}: {r.message}", file=file)


def render_site_section(results: Iterable[RuleResult], *, file: IO[str]) -> None:
    res = list(results)
    if not res:
        return
    _writeln("\n--- Site ---", file=file)
    for r in res:
        _writeln(f"- [{_mark(r)}] {r.rule_id}: {r.message}", file=file)


def render_rules(rules: Iterable[RuleInfo], *, file: IO[str]) -> None:
    for rule in rules:
        _writeln(
            f"{rule.id:<42} {rule.scope:<5} {rule.severity:<9} {rule.category:<14} {rule.name}",
            file=file,
        )
