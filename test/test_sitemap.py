# test/test_sitemap.py
from __future__ import annotations

import pytest

from conftest import SITE, html, sitemapindex, urlset
from seo_crawler.sitemap import (
    FALLBACK_SITEMAP_PATHS,
    SitemapResolver,
    is_sitemap_index,
    parse_sitemap_locs,
)

XML = {"content-type": "application/xml"}


def test_parse_sitemap_locs_handles_namespaces():
    locs = parse_sitemap_locs(urlset(f"{SITE}/a", f"{SITE}/b"))
    assert locs == {f"{SITE}/a", f"{SITE}/b"}


def test_parse_sitemap_locs_resolves_relative_entries():
    locs = parse_sitemap_locs(urlset("/rel"), source=f"{SITE}/sitemap.xml")
    assert locs == {f"{SITE}/rel"}


def test_parse_sitemap_locs_malformed_is_empty():
    assert parse_sitemap_locs("<urlset><url><loc>oops") == set()
    assert parse_sitemap_locs("plain text") == set()


def test_is_sitemap_index():
    assert is_sitemap_index(sitemapindex(f"{SITE}/s1.xml"))
    assert not is_sitemap_index(urlset(f"{SITE}/a"))


@pytest.mark.asyncio
async def test_resolves_plain_urlset(make_site):
    site = make_site(
        {
            "/": html(),
            "/sitemap.xml": (200, urlset(f"{SITE}/a", f"{SITE}/b"), XML),
        }
    )
    async with site.client() as client:
        resolver = SitemapResolver(f"{SITE}/", client)
        urls = await resolver.resolve()
    assert urls == {f"{SITE}/a", f"{SITE}/b"}
    for path in FALLBACK_SITEMAP_PATHS:
        assert f"{SITE}{path}" in site.requested
    assert resolver.locations() == [
        (f"{SITE}/a", f"{SITE}/sitemap.xml"),
        (f"{SITE}/b", f"{SITE}/sitemap.xml"),
    ]


@pytest.mark.asyncio
async def test_expands_nested_sitemap_index(make_site):
    site = make_site(
        {
            "/": html(),
            "/sitemap.xml": (200, sitemapindex(f"{SITE}/s1.xml", f"{SITE}/nested.xml"), XML),
            "/s1.xml": (200, urlset(f"{SITE}/a"), XML),
            "/nested.xml": (200, sitemapindex(f"{SITE}/s2.xml"), XML),
            "/s2.xml": (200, urlset(f"{SITE}/b", f"{SITE}/c"), XML),
        }
    )
    async with site.client() as client:
        resolver = SitemapResolver(f"{SITE}/", client)
        urls = await resolver.resolve()
    # Index entries never show up as pages.
    assert urls == {f"{SITE}/a", f"{SITE}/b", f"{SITE}/c"}
    assert resolver.sitemaps[f"{SITE}/sitemap.xml"] == set()
    assert resolver.sitemaps[f"{SITE}/nested.xml"] == set()


@pytest.mark.asyncio
async def test_link_rel_sitemap_replaces_fallback_paths(make_site):
    site = make_site(
        {
            "/": html(head='<link rel="sitemap" href="/custom-map.xml">'),
            "/custom-map.xml": (200, urlset(f"{SITE}/only"), XML),
            "/sitemap.xml": (200, urlset(f"{SITE}/never"), XML),
        }
    )
    async with site.client() as client:
        urls = await SitemapResolver(f"{SITE}/", client).resolve()
    assert urls == {f"{SITE}/only"}
    assert f"{SITE}/sitemap.xml" not in site.requested


@pytest.mark.asyncio
async def test_missing_or_broken_sitemaps_yield_empty(make_site):
    site = make_site(
        {
            "/": html(),
            "/sitemap.xml": (200, "<urlset><url><loc>broken", XML),
        }
    )
    async with site.client() as client:
        urls = await SitemapResolver(f"{SITE}/", client).resolve()
    assert urls == set()


@pytest.mark.asyncio
async def test_unreachable_root_still_tries_fallbacks(make_site):
    site = make_site({"/sitemap_index.xml": (200, urlset(f"{SITE}/x"), XML)})
    async with site.client() as client:
        urls = await SitemapResolver(f"{SITE}/", client).resolve()
    assert urls == {f"{SITE}/x"}


@pytest.mark.asyncio
async def test_max_sitemaps_bounds_expansion(make_site):
    children = [f"{SITE}/s{i}.xml" for i in range(10)]
    routes = {"/": html(), "/sitemap.xml": (200, sitemapindex(*children), XML)}
    for i in range(10):
        routes[f"/s{i}.xml"] = (200, urlset(f"{SITE}/p{i}"), XML)
    site = make_site(routes)
    async with site.client() as client:
        resolver = SitemapResolver(f"{SITE}/", client, max_sitemaps=6)
        await resolver.resolve()
    assert len(resolver.sitemaps) == 6
