# seo_crawler/cache.py
"""
File-backed HTTP response cache.

- Storage: diskcache.Cache.
- Location: a visible folder in CWD by default; "os-default" resolves an
  OS-specific app cache dir via platformdirs.
- Scope: 2xx HTML pages only, unless store_errors is set. Audits usually want
  live data, so the crawler runs with the cache disabled unless configured.
"""
from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any, Optional

import diskcache
from platformdirs import user_cache_dir as _user_cache_dir

log = logging.getLogger(__name__)


@dataclasses.dataclass
class CacheConfig:
    enabled: bool = False
    # Either a concrete directory path, or the marker "os-default".
    directory: str = ".seo_crawler_cache"
    expire_seconds: int = 24 * 3600  # 1 day
    store_errors: bool = False

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> "CacheConfig":
        return cls(
            enabled=bool(raw.get("enabled", False)),
            directory=str(raw.get("directory", ".seo_crawler_cache")),
            expire_seconds=int(raw.get("expire_seconds", 24 * 3600)),
            store_errors=bool(raw.get("store_errors", False)),
        )


class FileCache:
    """
    Thin wrapper over diskcache.
    Keys: URL strings as requested.
    Values: dict with final_url, status, redirected, headers (lowercased keys),
    text, content_type, elapsed_ms.
    """

    def __init__(self, cfg: CacheConfig, app_name: str = "seo_crawler"):
        self.cfg = cfg
        self.app_name = app_name
        self._cache: diskcache.Cache | None = None
        if not cfg.enabled:
            log.debug("Response cache disabled")
            return
        self.create_cache_object()

    def create_cache_object(self) -> None:
        if self._cache is not None:
            return
        directory = self.cfg.directory
        if directory == "os-default":
            directory = _user_cache_dir(self.app_name, appauthor=False)
        log.info("Response cache at %s", directory)
        self._cache = diskcache.Cache(directory)

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    # ---- Introspection helpers ---------------------------------------------

    @property
    def directory(self) -> Optional[str]:
        if self._cache is None:
            return None
        return str(self._cache.directory)

    def _dir_size_bytes(self) -> int:
        d = self.directory
        if not d:
            return 0
        path = Path(d)
        if not path.exists():
            return 0
        total = 0
        for p in path.rglob("*"):
            try:
                if p.is_file():
                    total += p.stat().st_size
            except OSError:
                continue
        return total

    def stats(self) -> dict[str, int | str]:
        """Returns items, on-disk bytes and the absolute directory."""
        if self._cache is None:
            return {"items": 0, "bytes": 0, "directory": ""}
        return {
            "items": len(self._cache),
            "bytes": self._dir_size_bytes(),
            "directory": os.path.abspath(self.directory or ""),
        }

    def clear_all(self) -> None:
        if self._cache is None:
            log.warning("Cache disabled")
            return
        self._cache.clear()

    # ---- Public API ---------------------------------------------------------

    def get(self, url: str) -> Optional[dict[str, Any]]:
        if self._cache is None:
            return None
        return self._cache.get(url)

    def set_page(
        self,
        url: str,
        *,
        final_url: str,
        status: int,
        redirected: bool,
        headers: dict[str, str],
        text: str,
        content_type: str,
        elapsed_ms: float | None = None,
    ) -> None:
        if self._cache is None:
            return
        if not 200 <= status < 300 and not self.cfg.store_errors:
            log.debug("Not caching %s, got %d", url, status)
            return
        self._cache.set(
            url,
            {
                "final_url": final_url,
                "status": status,
                "redirected": redirected,
                "headers": {k.lower(): v for k, v in (headers or {}).items()},
                "text": text,
                "content_type": (
                    content_type.lower() if isinstance(content_type, str) else ""
                ),
                "elapsed_ms": elapsed_ms,
            },
            expire=self.cfg.expire_seconds,
        )
