# seo_crawler/config.py
"""
Centralized configuration management.

Handles loading defaults, merging in settings from pyproject.toml
([tool.seo_crawler]), and exposing a typed view for the crawler.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, MutableMapping

import tomli

from seo_crawler.cache import CacheConfig
from seo_crawler.rules import PluginRegistry, RuleConfig

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VALID_SEVERITIES = {"info", "warning", "error", "critical"}

# This is the baseline configuration dictionary.
DEFAULT_CONFIG: dict[str, Any] = {
    "max_concurrent_requests": 10,
    "request_delay_ms": 100,
    "timeout": 10.0,
    "user_agent": DEFAULT_USER_AGENT,
    # Sitemap fan-out is bounded independently of the page workers.
    "sitemap_concurrency": 8,
    "max_sitemaps": 1000,
    # --- Rule selection ---
    "disabled_rules": [],
    "severity_overrides": {},
    "cache": {
        "enabled": False,
        "directory": ".seo_crawler_cache",
        "expire_seconds": 24 * 3600,  # 1 day
        "store_errors": False,
    },
}


def _deep_merge_dict(
    base: MutableMapping[str, Any], overrides: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Recursively merge dicts."""
    for key, value in overrides.items():
        if isinstance(value, MutableMapping) and isinstance(
            base.get(key), MutableMapping
        ):
            base[key] = _deep_merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def load_config(pyproject_path: Path | None = None) -> dict[str, Any]:
    """
    Loads configuration from defaults and merges settings from pyproject.toml.

    1. Starts with a deep copy of DEFAULT_CONFIG.
    2. Looks for `pyproject.toml` (default: the current working directory).
    3. If found, merges `[tool.seo_crawler]` over the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if pyproject_path is None:
        pyproject_path = Path.cwd() / "pyproject.toml"

    if not pyproject_path.exists():
        log.debug("No pyproject.toml found at %s. Using default config.", pyproject_path)
        return config

    try:
        with pyproject_path.open("rb") as f:
            toml_data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        log.warning(
            "Failed to load or parse %s: %s. Using default config.",
            pyproject_path,
            e,
        )
        return config

    project_config = toml_data.get("tool", {}).get("seo_crawler", {})
    if project_config:
        log.info("Loading config from %s", pyproject_path)
        config = _deep_merge_dict(config, project_config)  # type: ignore[assignment]
    else:
        log.debug("No [tool.seo_crawler] section in %s.", pyproject_path)
    return config


@dataclass
class CrawlSettings:
    """Typed view of the crawl-related configuration keys."""

    max_concurrent_requests: int = 10
    request_delay_ms: int = 100
    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    sitemap_concurrency: int = 8
    max_sitemaps: int = 1000
    cache: CacheConfig = field(default_factory=CacheConfig)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CrawlSettings":
        return cls(
            max_concurrent_requests=max(1, int(config.get("max_concurrent_requests", 10))),
            request_delay_ms=max(0, int(config.get("request_delay_ms", 100))),
            timeout=float(config.get("timeout", 10.0)),
            user_agent=str(config.get("user_agent", DEFAULT_USER_AGENT)),
            sitemap_concurrency=max(1, int(config.get("sitemap_concurrency", 8))),
            max_sitemaps=max(1, int(config.get("max_sitemaps", 1000))),
            cache=CacheConfig.from_mapping(config.get("cache", {})),
        )


def build_rule_config(registry: PluginRegistry, config: dict[str, Any]) -> RuleConfig:
    """
    Enable every rule the registry offers, then apply `disabled_rules` and
    `severity_overrides`. Unknown rule ids are logged and ignored.
    """
    available = {rule.id for rule in registry.get_available_rules()}
    rule_config = RuleConfig.enable_all(sorted(available))

    for rule_id in config.get("disabled_rules", []):
        if rule_id not in available:
            log.warning("Unknown rule id in disabled_rules: %s", rule_id)
            continue
        rule_config.disable_rule(rule_id)

    for rule_id, severity in (config.get("severity_overrides") or {}).items():
        if rule_id not in available:
            log.warning("Unknown rule id in severity_overrides: %s", rule_id)
            continue
        if severity not in VALID_SEVERITIES:
            log.warning("Invalid severity %r for rule %s", severity, rule_id)
            continue
        rule_config.set_severity(rule_id, severity)

    return rule_config
