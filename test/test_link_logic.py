# test/test_link_logic.py
from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from seo_crawler.errors import UrlParseError
from seo_crawler.link_logic import (
    classify,
    clean_url,
    extract_hrefs,
    is_fetchable_url,
    parse_base_url,
    resolve_href,
)

BASE = "https://example.com/"


# ---------- classify ----------


@pytest.mark.parametrize(
    "href, expected_href, expected_type",
    [
        ("/page1", "https://example.com/page1", "internal"),
        ("page2", "https://example.com/page2", "internal"),
        ("https://example.com/about", "https://example.com/about", "internal"),
        ("HTTPS://EXAMPLE.COM/About", "https://example.com/About", "internal"),
        ("http://example.com/plain", "http://example.com/plain", "internal"),
        ("https://other.org/x", "https://other.org/x", "external"),
        ("https://sub.example.com/", "https://sub.example.com/", "external"),
        ("mailto:someone@example.com", "mailto:someone@example.com", "mailto"),
        ("tel:+15551234", "tel:+15551234", "tel"),
        ("javascript:void(0)", "javascript:void(0)", "unknown"),
        ("ftp://example.com/file", "ftp://example.com/file", "unknown"),
    ],
)
def test_classify(href, expected_href, expected_type):
    link = classify(href, BASE)
    assert link.href == expected_href
    assert link.link_type == expected_type


def test_classify_resolves_relative_against_nested_base():
    link = classify("../img/logo.png", "https://example.com/blog/post/")
    assert link.href == "https://example.com/blog/img/logo.png"
    assert link.path == "/blog/img/logo.png"
    assert link.link_type == "internal"


def test_classify_is_deterministic():
    hrefs = ["/a", "https://x.org", "mailto:a@b.c", "#frag", "?q=1"]
    first = [classify(h, BASE) for h in hrefs]
    second = [classify(h, BASE) for h in hrefs]
    assert first == second


def test_classify_fragment_only_points_at_base():
    link = classify("#section", BASE)
    assert link.link_type == "internal"
    assert clean_url(link.href) == BASE


def test_classify_malformed_never_raises():
    link = classify("http://[::1", BASE)
    assert link.link_type == "unknown"


# ---------- clean_url ----------


@pytest.mark.parametrize(
    "inp, exp",
    [
        ("https://example.com/a?x=1", "https://example.com/a"),
        ("https://example.com/a#top", "https://example.com/a"),
        ("https://example.com/a?x=1#top", "https://example.com/a"),
        ("https://example.com/a", "https://example.com/a"),
    ],
)
def test_clean_url(inp, exp):
    assert clean_url(inp) == exp


def test_clean_url_is_idempotent():
    u = "https://example.com/p?a=b#c"
    assert clean_url(clean_url(u)) == clean_url(u)


# ---------- base URL validation ----------


@pytest.mark.parametrize(
    "inp, exp",
    [
        ("https://Example.com", "https://example.com/"),
        ("http://example.com/start", "http://example.com/start"),
        ("  https://example.com/  ", "https://example.com/"),
    ],
)
def test_parse_base_url_ok(inp, exp):
    assert parse_base_url(inp) == exp


@pytest.mark.parametrize(
    "bad",
    ["", "   ", "not a url", "/relative/path", "ftp://example.com", "mailto:a@b.c", "https://"],
)
def test_parse_base_url_rejects(bad):
    with pytest.raises(UrlParseError):
        parse_base_url(bad)


# ---------- helpers ----------


@pytest.mark.parametrize(
    "u, ok",
    [
        ("http://example.com", True),
        ("https://example.com/x", True),
        ("mailto:user@example.com", False),
        ("javascript:alert(1)", False),
        ("", False),
    ],
)
def test_is_fetchable_url(u, ok):
    assert is_fetchable_url(u) is ok


def test_resolve_href_keeps_absolute_and_joins_relative():
    assert resolve_href("tel:123", BASE) == "tel:123"
    assert resolve_href("/x", "https://example.com/a/b") == "https://example.com/x"


def test_extract_hrefs_only_anchors_with_href():
    soup = BeautifulSoup(
        '<a href="/one">1</a><a>no href</a><a href="  ">blank</a>'
        '<link href="/style.css" rel="stylesheet"><a href=" /two ">2</a>',
        "html.parser",
    )
    assert extract_hrefs(soup) == ["/one", "/two"]
