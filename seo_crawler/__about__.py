"""Metadata for seo_crawler."""

__all__ = [
    "__title__",
    "__version__",
    "__description__",
    "__requires_python__",
]

__title__ = "seo_crawler"
__version__ = "0.1.0"
__description__ = (
    "Crawl a website, build its link graph and evaluate SEO, accessibility "
    "and performance rules per page and per site."
)
__requires_python__ = ">=3.9"
