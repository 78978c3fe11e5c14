# test/conftest.py
from __future__ import annotations

from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

SITE = "https://site.test"

Route = Union[str, Tuple[int, str], Tuple[int, str, Dict[str, str]]]


def html(body: str = "", head: str = "", lang: str = "en") -> str:
    return (
        f'<!doctype html><html lang="{lang}"><head>{head}</head>'
        f"<body>{body}</body></html>"
    )


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</urlset>"
    )


def sitemapindex(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</sitemapindex>"
    )


class FakeSite:
    """
    Serves a dict of path -> body (200), or path -> (status, body[, headers]).
    Unknown paths and foreign hosts get a 404. Every requested URL is recorded.
    """

    def __init__(self, routes: Dict[str, Route], host: str = "site.test") -> None:
        self.routes = routes
        self.host = host
        self.requested: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requested.append(str(request.url))
        if request.url.host != self.host:
            return httpx.Response(404, text="not found")
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, str):
            return httpx.Response(
                200, text=route, headers={"content-type": "text/html; charset=utf-8"}
            )
        status, body, *rest = route
        headers = rest[0] if rest else {"content-type": "text/html; charset=utf-8"}
        return httpx.Response(status, text=body, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, follow_redirects=True)


@pytest.fixture
def make_site() -> Callable[..., FakeSite]:
    return FakeSite


@pytest.fixture
def small_site() -> FakeSite:
    """
    / links /page1, /page2, an external URL, a mailto, and /page1 again with
    a query and fragment. /page1 links /page5. The sitemap lists /page1 and
    /page3, so /page3 is reachable only through the sitemap.
    """
    desc = '<meta name="description" content="{}">'
    return FakeSite(
        {
            "/": html(
                '<a href="/page1">1</a><a href="/page2">2</a>'
                '<a href="https://other.org/x">ext</a>'
                '<a href="mailto:hi@site.test">mail</a>'
                '<a href="/page1?utm=1#top">1 again</a>',
                head="<title>Home</title>" + desc.format("Home page"),
            ),
            "/page1": html(
                '<a href="/page5">5</a>',
                head="<title>One</title>" + desc.format("Page one"),
            ),
            "/page2": html(head="<title>Two</title>" + desc.format("Page two")),
            "/page3": html(head="<title>Three</title>" + desc.format("Page three")),
            "/page5": html(
                '<a href="/">home</a>',
                head="<title>Five</title>" + desc.format("Page five"),
            ),
            "/sitemap.xml": (
                200,
                urlset(f"{SITE}/page1", f"{SITE}/page3"),
                {"content-type": "application/xml"},
            ),
        }
    )
