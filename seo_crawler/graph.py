# seo_crawler/graph.py
"""
The crawl's link graph: one dict of PageLink nodes behind one asyncio.Lock.

Every method holds the lock only for the map operation itself, never across
an awaited network call. Nodes are keyed by the query/fragment-stripped URL,
are created on first discovery, gain sources by set union, receive their
PageResult once, and are never removed.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from seo_crawler.link_logic import classify, clean_url
from seo_crawler.models import LinkSource, PageLink, PageResult, RuleResult

log = logging.getLogger(__name__)


class LinkGraph:
    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self._links: Dict[str, PageLink] = {}
        self._lock = asyncio.Lock()

    async def add_link(self, href: str, source: LinkSource) -> Tuple[str, bool]:
        """
        Classify `href` against the base URL and upsert its node.
        Returns the node key and whether the node was newly created.
        """
        link = classify(href, self.base_url)
        key = clean_url(link.href)
        async with self._lock:
            existing = self._links.get(key)
            if existing is not None:
                existing.found_in.add(source)
                return key, False
            self._links[key] = PageLink(
                url=key, link_type=link.link_type, found_in={source}
            )
        log.debug("New %s link: %s (via %s)", link.link_type, key, source.source_type)
        return key, True

    async def record_result(self, url: str, result: PageResult) -> Optional[PageLink]:
        """
        Assign the node's result. A node that already has one is never reset;
        later rule results are appended to it instead, unless it is an error
        result, which carries no rule results.
        """
        async with self._lock:
            link = self._links.get(url)
            if link is None:
                log.warning("Result for unknown URL ignored: %s", url)
                return None
            if link.result is None:
                link.result = result
            elif result.rule_results and not link.result.error:
                link.result.rule_results.extend(result.rule_results)
            return link.copy()

    async def annotate(self, url: str, results: List[RuleResult]) -> bool:
        """Append rule results to a node that was processed without error."""
        async with self._lock:
            link = self._links.get(url)
            if link is None or link.result is None or link.result.error:
                return False
            link.result.rule_results.extend(results)
            return True

    async def pending_internal(self) -> List[str]:
        """Keys of internal nodes that have not been processed yet."""
        async with self._lock:
            return sorted(
                key
                for key, link in self._links.items()
                if link.link_type == "internal" and link.result is None
            )

    async def counts(self) -> Tuple[int, int]:
        """(internal nodes, internal nodes with a result)."""
        async with self._lock:
            internal = [l for l in self._links.values() if l.link_type == "internal"]
            return len(internal), sum(1 for l in internal if l.result is not None)

    async def snapshot(self) -> Dict[str, PageLink]:
        async with self._lock:
            return {key: link.copy() for key, link in self._links.items()}

    async def get(self, url: str) -> Optional[PageLink]:
        async with self._lock:
            link = self._links.get(url)
            return link.copy() if link is not None else None

    def __len__(self) -> int:
        return len(self._links)
