# seo_crawler/plugins.py
"""
Built-in page-level plugins.

Each rule's check is a plain function of one Page. A missing element is a
normal failed outcome, never an engine error.
"""
from __future__ import annotations

from typing import List, Sequence

from seo_crawler.models import CheckResult
from seo_crawler.page import Page
from seo_crawler.rules import PagePlugin, Rule

TITLE_MAX_LENGTH = 60
DESCRIPTION_MAX_LENGTH = 155
MAX_PAGE_BYTES = 1_000_000

# --- Title ---


def check_has_title(page: Page) -> CheckResult:
    has_title = page.extract_meta_tags().title is not None
    return CheckResult(
        passed=has_title,
        message="Page has a title tag" if has_title else "Page is missing a title tag",
    )


def check_title_length(page: Page) -> CheckResult:
    title = page.extract_meta_tags().title or ""
    length = len(title)
    return CheckResult(
        passed=0 < length < TITLE_MAX_LENGTH,
        message=f"Title length is {length} characters",
    )


class TitlePlugin(PagePlugin):
    plugin_id = "title"
    name = "Title"
    description = (
        "The title tag of a web page is meant to be an accurate and concise "
        "description of a page's content."
    )

    RULES = (
        Rule(
            id="title.has_title",
            name="Page has title tag",
            description="Checks if the page has a proper title tag",
            severity="critical",
            category="seo",
            check=check_has_title,
        ),
        Rule(
            id="title.title_length",
            name=f"Title length is less than {TITLE_MAX_LENGTH} characters",
            description=f"Checks if the title length is less than {TITLE_MAX_LENGTH} characters",
            severity="warning",
            category="seo",
            check=check_title_length,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


# --- Meta description ---


def check_has_meta_description(page: Page) -> CheckResult:
    has_description = page.extract_meta_tags().description is not None
    return CheckResult(
        passed=has_description,
        message=(
            "Page has a meta description"
            if has_description
            else "Page is missing a meta description"
        ),
    )


def check_description_length(page: Page) -> CheckResult:
    description = page.extract_meta_tags().description or ""
    length = len(description)
    return CheckResult(
        passed=0 < length < DESCRIPTION_MAX_LENGTH,
        message=f"Meta description length is {length} characters",
    )


class MetaDescriptionPlugin(PagePlugin):
    plugin_id = "meta_description"
    name = "MetaDescription"
    description = (
        "Meta descriptions provide concise explanations of the contents of web "
        "pages and are used for search result snippets."
    )

    RULES = (
        Rule(
            id="meta_description.has_meta_description",
            name="Page has meta description",
            description="Checks if the page has a meta description",
            severity="warning",
            category="seo",
            check=check_has_meta_description,
        ),
        Rule(
            id="meta_description.description_length",
            name=f"Meta description length is less than {DESCRIPTION_MAX_LENGTH} characters",
            description=(
                "Checks if the meta description length is less than "
                f"{DESCRIPTION_MAX_LENGTH} characters"
            ),
            severity="warning",
            category="seo",
            check=check_description_length,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


# --- Images ---


def check_images_alt(page: Page) -> CheckResult:
    missing = [img for img in page.extract_images() if img.alt is None]
    if not missing:
        return CheckResult(passed=True, message="All images have alt text")
    return CheckResult(passed=False, message=f"{len(missing)} images missing alt text")


def check_images_responsive(page: Page) -> CheckResult:
    missing = [img for img in page.extract_images() if img.srcset is None]
    if not missing:
        return CheckResult(passed=True, message="All images use srcset")
    return CheckResult(passed=False, message=f"{len(missing)} images missing srcset")


class ImagePlugin(PagePlugin):
    plugin_id = "images"
    name = "Images"
    description = "Image optimization analysis"

    RULES = (
        Rule(
            id="images.alt_text",
            name="Images have alt text",
            description="Checks if all images have alt text attributes",
            severity="warning",
            category="seo",
            check=check_images_alt,
        ),
        Rule(
            id="images.responsive",
            name="Images are responsive",
            description="Checks if images use srcset for responsive design",
            severity="warning",
            category="seo",
            check=check_images_responsive,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


# --- Canonical URL ---


def check_has_canonical(page: Page) -> CheckResult:
    has_canonical = page.extract_meta_tags().canonical is not None
    return CheckResult(
        passed=has_canonical,
        message=(
            "Page has a canonical url" if has_canonical else "Page is missing a canonical url"
        ),
    )


def check_canonical_matches_site(page: Page) -> CheckResult:
    canonical = page.extract_meta_tags().canonical
    matches = canonical is not None and canonical.startswith(page.base_url)
    return CheckResult(
        passed=matches,
        message="Canonical url matches site" if matches else "Canonical url does not match site",
    )


class SeoBasicPlugin(PagePlugin):
    plugin_id = "seo_basic"
    name = "SeoBasic"
    description = "Canonical URL checks"

    RULES = (
        Rule(
            id="seo_basic.has_canonical_url",
            name="Page has canonical url",
            description="Checks if the page has a canonical url",
            severity="warning",
            category="seo",
            check=check_has_canonical,
        ),
        Rule(
            id="seo_basic.canonical_url_matches_site",
            name="Canonical url matches site",
            description="Checks if the canonical url matches the site",
            severity="warning",
            category="seo",
            check=check_canonical_matches_site,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


# --- Request ---


def check_page_size(page: Page) -> CheckResult:
    size = page.content_length or 0
    if size <= MAX_PAGE_BYTES:
        return CheckResult(passed=True, message="Page size is within recommended limits")
    return CheckResult(
        passed=False,
        message=f"Page size is {size} bytes, above the {MAX_PAGE_BYTES} byte limit",
    )


def check_redirects(page: Page) -> CheckResult:
    if page.redirected:
        return CheckResult(
            passed=False,
            message=f"Page was reached through a redirect (HTTP {page.status_code})",
        )
    return CheckResult(passed=True, message="Page has no redirects")


class RequestPlugin(PagePlugin):
    plugin_id = "request"
    name = "Request"
    description = "Response size and redirect checks"

    RULES = (
        Rule(
            id="request.size",
            name="Page size",
            description="Checks if the page size is within the recommended limits",
            severity="warning",
            category="performance",
            check=check_page_size,
        ),
        Rule(
            id="request.redirects",
            name="Redirects",
            description="Checks if the page has redirects",
            severity="warning",
            category="performance",
            check=check_redirects,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


# --- Accessibility ---


def check_html_has_lang(page: Page) -> CheckResult:
    has_lang = bool((page.html_lang() or "").strip())
    return CheckResult(
        passed=has_lang,
        message="HTML has lang attribute" if has_lang else "HTML is missing lang attribute",
    )


def check_viewport_allows_zoom(page: Page) -> CheckResult:
    viewport = (page.extract_meta_tags().viewport or "").replace(" ", "").lower()
    disables_zoom = (
        viewport == ""
        or "user-scalable=no" in viewport
        or "maximum-scale=1.0" in viewport
        or viewport.endswith("maximum-scale=1")
        or "maximum-scale=1," in viewport
    )
    return CheckResult(
        passed=not disables_zoom,
        message=(
            "Meta viewport disables zooming" if disables_zoom else "Meta viewport allows zooming"
        ),
    )


class AccessibilityPlugin(PagePlugin):
    plugin_id = "accessibility"
    name = "Axe"
    description = "A subset of axe-core accessibility checks that need no rendering"

    RULES = (
        Rule(
            id="axe.html_has_lang",
            name="HTML has lang attribute",
            description="Ensures every HTML document has a lang attribute",
            severity="error",
            category="accessibility",
            check=check_html_has_lang,
        ),
        Rule(
            id="axe.alt_text",
            name="Images have alt text (Axe)",
            description="Ensures <img> elements have alternate text",
            severity="error",
            category="accessibility",
            check=check_images_alt,
        ),
        Rule(
            id="axe.meta_viewport",
            name="Meta viewport allows zoom",
            description=(
                "Ensures the meta viewport element does not disable text scaling and zooming"
            ),
            severity="error",
            category="accessibility",
            check=check_viewport_allows_zoom,
        ),
    )

    def available_rules(self) -> Sequence[Rule]:
        return self.RULES


def default_page_plugins() -> List[PagePlugin]:
    return [
        TitlePlugin(),
        MetaDescriptionPlugin(),
        ImagePlugin(),
        SeoBasicPlugin(),
        RequestPlugin(),
        AccessibilityPlugin(),
    ]
