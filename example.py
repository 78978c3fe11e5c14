# example.py
# A small example showing how to use the seo_crawler library to audit a
# site and print which pages fail which rules.

import asyncio
import logging
from collections import Counter

from seo_crawler import crawl_site
from seo_crawler.models import AnalysisProgress

# --- Configuration ---
# Logging shows the sitemap passes, crawl passes and per-page failures.
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# The site you want to audit. Keep the crawl polite: a small worker pool
# and a delay between requests.
TARGET_URL = "https://example.com/"


def on_progress(progress: AnalysisProgress) -> None:
    if progress.progress_type == "completed_pass":
        print(f"[*] Pass complete: {progress.completed_pages}/{progress.total_pages} pages")


async def main():
    print(f"[*] Starting SEO crawl for: {TARGET_URL}\n")

    try:
        result = await crawl_site(
            TARGET_URL,
            max_concurrent_requests=4,
            request_delay_ms=250,
            progress_callback=on_progress,
        )
    except Exception as e:
        print(f"\n[!] An unexpected error occurred: {e}")
        return

    print("\n--- CRAWL COMPLETE ---")
    print(f"Links in graph: {result.total_pages}")

    # Which rules fail most often across the site?
    failures = Counter()
    error_pages = []
    for page in result.page_results:
        if page.result is None:
            continue
        if page.result.error:
            error_pages.append((page.url, page.result.error_message))
            continue
        for rule in page.result.rule_results:
            if not rule.passed:
                failures[rule.rule_id] += 1

    if error_pages:
        print("\n--- Pages that could not be analyzed ---")
        for url, message in error_pages:
            print(f"- {url}: {message}")

    print("\n--- Most common failures ---")
    for rule_id, count in failures.most_common(10):
        print(f"{count:>4}  {rule_id}")

    print("\n--- Site-wide checks ---")
    for rule in result.site_result:
        mark = "PASS" if rule.passed else "FAIL"
        print(f"[{mark}] {rule.name}: {rule.message}")


if __name__ == "__main__":
    # The library is async, so we use asyncio.run() to start it.
    asyncio.run(main())
