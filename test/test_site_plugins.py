# test/test_site_plugins.py
from __future__ import annotations

import pytest

from conftest import html
from seo_crawler.models import LinkSource, PageLink, PageResult, UrlsContext, ValuesContext
from seo_crawler.page import Page
from seo_crawler.rules import PluginRegistry, RuleConfig, SiteState
from seo_crawler.site_plugins import MetaDescriptionSitePlugin, OrphanedPagePlugin

BASE = "https://example.com/"


def _node(path: str, *sources: LinkSource) -> PageLink:
    return PageLink(
        url=f"{BASE}{path}",
        link_type="internal",
        found_in=set(sources),
        result=PageResult(error=False),
    )


def _site(*links: PageLink) -> SiteState:
    return SiteState.from_links(BASE, {link.url: link for link in links})


def _check_uniqueness(plugin: MetaDescriptionSitePlugin):
    (rule,) = plugin.available_rules()
    return plugin.check(rule, _site())


# ---------- meta description uniqueness ----------


@pytest.mark.parametrize(
    "distinct, repeats, passed",
    [
        (10, 0, True),  # 10 of 10 distinct
        (9, 1, True),  # 9 of 10 distinct, exactly at the threshold
        (8, 2, False),  # 8 of 10 distinct
    ],
)
def test_uniqueness_threshold(distinct, repeats, passed):
    plugin = MetaDescriptionSitePlugin()
    for i in range(distinct):
        plugin.record(f"{BASE}d{i}", f"description {i}")
    for i in range(repeats):
        plugin.record(f"{BASE}r{i}", "description 0")
    assert _check_uniqueness(plugin).passed is passed


def test_uniqueness_reports_duplicate_groups():
    plugin = MetaDescriptionSitePlugin()
    plugin.record(f"{BASE}a", "same")
    plugin.record(f"{BASE}b", "same")
    plugin.record(f"{BASE}c", "other")
    result = _check_uniqueness(plugin)
    assert result.passed is False
    assert isinstance(result.context, ValuesContext)
    assert result.context.values == {"same": [f"{BASE}a", f"{BASE}b"]}


def test_uniqueness_with_no_descriptions_passes():
    assert _check_uniqueness(MetaDescriptionSitePlugin()).passed is True


def test_after_page_hook_collects_non_empty_descriptions():
    plugin = MetaDescriptionSitePlugin()
    with_desc = Page.from_markup(
        html(head='<meta name="description" content=" Hello ">'), url=f"{BASE}a"
    )
    blank = Page.from_markup(html(head='<meta name="description" content="  ">'), url=f"{BASE}b")
    missing = Page.from_markup(html(), url=f"{BASE}c")
    for page in (with_desc, blank, missing):
        plugin.after_page_hook(page, [])
    assert plugin._descriptions == {f"{BASE}a": "Hello"}


def test_recording_same_url_twice_keeps_one_entry():
    plugin = MetaDescriptionSitePlugin()
    plugin.record(f"{BASE}a", "first")
    plugin.record(f"{BASE}a", "second")
    result = _check_uniqueness(plugin)
    assert result.passed is True
    assert plugin._descriptions == {f"{BASE}a": "second"}


# ---------- orphaned pages ----------


def test_orphaned_pages_are_sitemap_only_nodes():
    sitemap = LinkSource("sitemap", f"{BASE}sitemap.xml")
    root = LinkSource("root", BASE)
    linked = LinkSource("link", BASE)
    site = _site(
        _node("", root),
        _node("both", sitemap, linked),
        _node("orphan-b", sitemap),
        _node("orphan-a", sitemap),
        _node("linked", linked),
    )
    plugin = OrphanedPagePlugin()
    (rule,) = plugin.available_rules()
    result = plugin.check(rule, site)
    assert result.passed is False
    assert result.message == "Orphaned pages: 2"
    assert isinstance(result.context, UrlsContext)
    assert result.context.urls == [f"{BASE}orphan-a", f"{BASE}orphan-b"]


def test_no_orphans_passes():
    plugin = OrphanedPagePlugin()
    (rule,) = plugin.available_rules()
    result = plugin.check(rule, _site(_node("", LinkSource("root", BASE))))
    assert result.passed is True
    assert result.message == "Orphaned pages: 0"


def test_registry_runs_site_rules_and_respects_config():
    registry = PluginRegistry.default()
    registry.set_config(RuleConfig.enable_all(["orphaned_page.check"]))
    results = registry.analyze_site(_site(_node("x", LinkSource("sitemap", f"{BASE}sitemap.xml"))))
    assert [r.rule_id for r in results] == ["orphaned_page.check"]
    assert results[0].plugin_name == "OrphanedPage Plugin"
    assert results[0].passed is False


def test_site_state_is_read_only():
    site = _site(_node("x", LinkSource("root", BASE)))
    with pytest.raises(TypeError):
        site.links["new"] = _node("new")  # type: ignore[index]


def test_reset_forgets_collected_descriptions():
    plugin = MetaDescriptionSitePlugin()
    plugin.record(f"{BASE}a", "same")
    plugin.record(f"{BASE}b", "same")
    assert _check_uniqueness(plugin).passed is False

    plugin.reset()
    assert plugin._descriptions == {}
    assert _check_uniqueness(plugin).passed is True


def test_registry_resets_every_site_plugin():
    registry = PluginRegistry.default()
    plugin = registry.get("meta_description_uniqueness")
    assert isinstance(plugin, MetaDescriptionSitePlugin)
    plugin.record(f"{BASE}a", "desc")
    registry.reset_site_state()
    assert plugin._descriptions == {}
