# seo_crawler/cli.py
# Defines the command-line interface using argparse.

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import IO, Any, Sequence

from seo_crawler.__about__ import __version__
from seo_crawler.api import crawl_site
from seo_crawler.cache import CacheConfig, FileCache
from seo_crawler.errors import UrlParseError
from seo_crawler.rules import PluginRegistry
from seo_crawler.ui import (
    render_crawl_header,
    render_page_section,
    render_rules,
    render_site_section,
    render_summary,
)

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _json_default(o: Any) -> Any:
    # Minimal encoder for dataclasses and sets of dataclasses.
    if is_dataclass(o) and not isinstance(o, type):
        return asdict(o)
    if isinstance(o, (set, frozenset)):
        return sorted(o, key=str)
    return str(o)


def _human_bytes(n: int) -> str:
    # Compact human-readable bytes
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    v = float(n)
    while v >= 1024 and i < len(units) - 1:
        v /= 1024.0
        i += 1
    s = f"{v:.2f}".rstrip("0").rstrip(".")
    return f"{s} {units[i]}"


def _init_file_cache(cache_dir: str | None, os_default: bool) -> FileCache:
    cfg = CacheConfig(enabled=True)
    if os_default:
        cfg.directory = "os-default"
    if cache_dir:
        cfg.directory = cache_dir
    return FileCache(cfg)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a website and report SEO, accessibility and performance findings.",
        prog="seo_crawler",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- crawl ---
    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a site and print a summary of failed rules."
    )
    crawl_parser.add_argument("url", help="The absolute http(s) URL to start from.")
    crawl_parser.add_argument(
        "--json",
        dest="json_output",
        metavar="FILEPATH",
        help="Also write the full crawl result as JSON to this path.",
    )
    crawl_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        metavar="N",
        help="Maximum number of pages fetched at once (default: 10).",
    )
    crawl_parser.add_argument(
        "--delay-ms",
        dest="delay_ms",
        type=int,
        default=None,
        metavar="N",
        help="Delay before each page fetch in milliseconds (default: 100).",
    )
    crawl_parser.add_argument(
        "--disable-rule",
        dest="disabled_rules",
        action="append",
        default=[],
        metavar="RULE_ID",
        help="Disable a rule by id. Can be repeated.",
    )

    # --- rules ---
    subparsers.add_parser("rules", help="List every available rule.")

    # --- cache ---
    cache_parser = subparsers.add_parser(
        "cache", help="Manage the on-disk HTTP cache."
    )
    cache_parser.add_argument(
        "--dir",
        dest="cache_dir",
        metavar="PATH",
        default=None,
        help="Cache directory to operate on (defaults to library default).",
    )
    cache_parser.add_argument(
        "--os-default",
        dest="cache_os_default",
        action="store_true",
        help="Use the OS-specific default cache directory.",
    )
    cache_sub = cache_parser.add_subparsers(dest="cache_cmd", required=True)
    cache_sub.add_parser("clear", help="Wipe the entire cache directory.")
    cache_sub.add_parser("stats", help="Show total items and size on disk.")
    cache_inspect = cache_sub.add_parser(
        "inspect", help="Dump the cached record for a specific URL."
    )
    cache_inspect.add_argument("url", help="The exact URL key to inspect in cache.")
    return parser


def _run_cache_command(args: argparse.Namespace, stdout: IO[str]) -> int:
    fc = _init_file_cache(args.cache_dir, args.cache_os_default)
    try:
        if args.cache_cmd == "clear":
            fc.clear_all()
            d = fc.directory or "(disabled)"
            print(f"Cache cleared at: {d}", file=stdout)
            return 0

        if args.cache_cmd == "stats":
            st = fc.stats()
            bytes_on_disk = int(st.get("bytes", 0))
            out = {
                "directory": st.get("directory", ""),
                "items": int(st.get("items", 0)),
                "bytes": bytes_on_disk,
                "human_bytes": _human_bytes(bytes_on_disk),
            }
            print(json.dumps(out, indent=2), file=stdout)
            return 0

        # inspect
        data = fc.get(args.url)
        if data is None:
            print("Cache miss", file=stdout)
            return 2
        print(json.dumps(data, indent=2, default=_json_default), file=stdout)
        return 0
    finally:
        fc.close()


async def async_main(
    argv: Sequence[str] | None = None, stdout: IO[str] | None = None
) -> int:
    """Async entry point for the command-line interface."""
    stdout = stdout or sys.stdout

    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "cache":
        return _run_cache_command(args, stdout)

    if args.command == "rules":
        render_rules(PluginRegistry.default().get_available_rules(), file=stdout)
        return 0

    # args.command == "crawl"
    render_crawl_header(args.url, file=stdout)
    try:
        result = await crawl_site(
            args.url,
            max_concurrent_requests=args.concurrency,
            request_delay_ms=args.delay_ms,
            disabled_rules=args.disabled_rules,
        )
    except UrlParseError as e:
        log.error("%s", e)
        print(f"Error: {e}", file=stdout)
        return 1

    render_summary(result, file=stdout)
    render_page_section(result, file=stdout)
    render_site_section(result.site_result, file=stdout)

    if args.json_output:
        out_path = Path(args.json_output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            json.dump(result, f, default=_json_default, indent=2)
        print(f"\nFull report written to {args.json_output}", file=stdout)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous wrapper for the CLI entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
