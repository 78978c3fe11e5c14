# seo_crawler/rules.py
"""
Rule engine: rule definitions, the per-run RuleConfig, the two plugin kinds
and the registry that fans out to them.

Page plugins evaluate pure `check(page)` functions. Site plugins may collect
cross-page state in `after_page_hook` and evaluate `check(rule, site)` once
the crawl has converged. Severity and category are informational tags and
never change pass/fail.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Literal, Mapping, Optional, Sequence, Union

from seo_crawler.errors import ConfigError
from seo_crawler.models import (
    Category,
    CheckResult,
    PageLink,
    RuleResult,
    Severity,
)
from seo_crawler.page import Page

log = logging.getLogger(__name__)

CheckFn = Callable[[Page], CheckResult]


@dataclass(frozen=True)
class Rule:
    id: str
    name: str
    description: str
    severity: Severity
    category: Category
    check: CheckFn = field(compare=False, repr=False)


@dataclass(frozen=True)
class SiteRule:
    id: str
    name: str
    description: str
    severity: Severity
    category: Category


@dataclass(frozen=True)
class RuleInfo:
    """Flattened description of a rule, used to list and configure rules."""

    id: str
    name: str
    description: str
    severity: Severity
    category: Category
    plugin_id: str
    plugin_name: str
    scope: Literal["page", "site"]


class RuleConfig:
    """
    Which rules run, plus optional severity overrides.
    Rules without an entry are disabled.
    """

    def __init__(
        self,
        enabled: Optional[Mapping[str, bool]] = None,
        severities: Optional[Mapping[str, Severity]] = None,
    ) -> None:
        self._enabled: Dict[str, bool] = dict(enabled or {})
        self._severities: Dict[str, Severity] = dict(severities or {})

    def __repr__(self) -> str:
        on = sorted(k for k, v in self._enabled.items() if v)
        return f"RuleConfig(enabled={on!r}, severities={self._severities!r})"

    @classmethod
    def enable_all(cls, rule_ids: Sequence[str]) -> "RuleConfig":
        return cls(enabled={rule_id: True for rule_id in rule_ids})

    def enable_rule(self, rule_id: str) -> None:
        self._enabled[rule_id] = True

    def disable_rule(self, rule_id: str) -> None:
        self._enabled[rule_id] = False

    def set_severity(self, rule_id: str, severity: Severity) -> None:
        self._severities[rule_id] = severity

    def is_rule_enabled(self, rule_id: str) -> bool:
        return self._enabled.get(rule_id, False)

    def get_severity(self, rule_id: str, default: Severity) -> Severity:
        return self._severities.get(rule_id, default)


@dataclass(frozen=True)
class SiteState:
    """Read-only view handed to site rules after the crawl converges."""

    base_url: str
    links: Mapping[str, PageLink]

    @classmethod
    def from_links(cls, base_url: str, links: Mapping[str, PageLink]) -> "SiteState":
        return cls(base_url=base_url, links=MappingProxyType(dict(links)))


# ---------- Plugins ----------


class Plugin(ABC):
    """Capability surface shared by page and site plugins."""

    plugin_id: str = ""
    name: str = ""
    description: str = ""
    # ids of plugins that must be registered first
    dependencies: Sequence[str] = ()

    def initialize(self, registry: "PluginRegistry") -> None:
        """Called once by the registry at registration time."""

    @abstractmethod
    def available_rules(self) -> Sequence[Union[Rule, SiteRule]]:
        ...

    def _stamp(
        self,
        rule: Union[Rule, SiteRule],
        result: CheckResult,
        config: RuleConfig,
    ) -> RuleResult:
        return RuleResult(
            rule_id=rule.id,
            name=rule.name,
            plugin_name=self.name,
            passed=result.passed,
            message=result.message,
            severity=config.get_severity(rule.id, rule.severity),
            category=rule.category,
            context=result.context,
        )


class PagePlugin(Plugin):
    @abstractmethod
    def available_rules(self) -> Sequence[Rule]:
        ...

    def analyze(self, page: Page, config: RuleConfig) -> List[RuleResult]:
        """Run every enabled rule against `page`, in rule-list order."""
        results: List[RuleResult] = []
        for rule in self.available_rules():
            if not config.is_rule_enabled(rule.id):
                continue
            try:
                outcome = rule.check(page)
            except Exception as e:
                log.exception("Rule %s raised on %s", rule.id, page.url)
                outcome = CheckResult(
                    passed=False,
                    message=f"Rule check raised {type(e).__name__}: {e}",
                )
            results.append(self._stamp(rule, outcome, config))
        return results


class SitePlugin(Plugin):
    @abstractmethod
    def available_rules(self) -> Sequence[SiteRule]:
        ...

    def after_page_hook(self, page: Page, results: Sequence[RuleResult]) -> None:
        """
        Called once per processed page, possibly from concurrent workers.
        Implementations guard their own state.
        """

    def reset(self) -> None:
        """Drop state collected by earlier crawls. Called before each crawl."""

    @abstractmethod
    def check(self, rule: SiteRule, site: SiteState) -> CheckResult:
        ...

    def analyze(self, site: SiteState, config: RuleConfig) -> List[RuleResult]:
        results: List[RuleResult] = []
        for rule in self.available_rules():
            if not config.is_rule_enabled(rule.id):
                continue
            try:
                outcome = self.check(rule, site)
            except Exception as e:
                log.exception("Site rule %s raised", rule.id)
                outcome = CheckResult(
                    passed=False,
                    message=f"Rule check raised {type(e).__name__}: {e}",
                )
            results.append(self._stamp(rule, outcome, config))
        return results


# ---------- Registry ----------


class PluginRegistry:
    """
    Plugins of both kinds keyed by their stable `plugin_id`, in registration
    order. A plugin can only be registered after the plugins it depends on.
    """

    def __init__(self, config: Optional[RuleConfig] = None) -> None:
        self._plugins: Dict[str, Plugin] = {}
        self.config = config

    def __repr__(self) -> str:
        return f"PluginRegistry(plugins={list(self._plugins)!r})"

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def register(self, plugin: Plugin) -> None:
        if not plugin.plugin_id:
            raise ConfigError(f"{type(plugin).__name__} has no plugin_id")
        if plugin.plugin_id in self._plugins:
            raise ConfigError(f"Plugin already registered: {plugin.plugin_id}")
        missing = [d for d in plugin.dependencies if d not in self._plugins]
        if missing:
            raise ConfigError(
                f"Plugin {plugin.plugin_id} depends on unregistered plugin(s): "
                + ", ".join(missing)
            )
        plugin.initialize(self)
        self._plugins[plugin.plugin_id] = plugin
        log.debug("Registered plugin %s", plugin.plugin_id)

    def get(self, plugin_id: str) -> Optional[Plugin]:
        return self._plugins.get(plugin_id)

    @property
    def page_plugins(self) -> List[PagePlugin]:
        return [p for p in self._plugins.values() if isinstance(p, PagePlugin)]

    @property
    def site_plugins(self) -> List[SitePlugin]:
        return [p for p in self._plugins.values() if isinstance(p, SitePlugin)]

    def set_config(self, config: RuleConfig) -> None:
        self.config = config

    def get_config(self) -> RuleConfig:
        if self.config is None:
            raise ConfigError("No RuleConfig set on the plugin registry")
        return self.config

    def get_available_rules(self) -> List[RuleInfo]:
        out: List[RuleInfo] = []
        for plugin in self._plugins.values():
            scope: Literal["page", "site"] = (
                "site" if isinstance(plugin, SitePlugin) else "page"
            )
            for rule in plugin.available_rules():
                out.append(
                    RuleInfo(
                        id=rule.id,
                        name=rule.name,
                        description=rule.description,
                        severity=rule.severity,
                        category=rule.category,
                        plugin_id=plugin.plugin_id,
                        plugin_name=plugin.name,
                        scope=scope,
                    )
                )
        return out

    def analyze(self, page: Page) -> List[RuleResult]:
        config = self.get_config()
        results: List[RuleResult] = []
        for plugin in self.page_plugins:
            results.extend(plugin.analyze(page, config))
        return results

    def reset_site_state(self) -> None:
        for plugin in self.site_plugins:
            plugin.reset()

    def after_page(self, page: Page, results: Sequence[RuleResult]) -> None:
        for plugin in self.site_plugins:
            try:
                plugin.after_page_hook(page, results)
            except Exception:
                log.exception(
                    "after_page_hook of %s failed on %s", plugin.plugin_id, page.url
                )

    def analyze_site(self, site: SiteState) -> List[RuleResult]:
        config = self.get_config()
        results: List[RuleResult] = []
        for plugin in self.site_plugins:
            results.extend(plugin.analyze(site, config))
        return results

    @classmethod
    def default(cls) -> "PluginRegistry":
        """Registry with every built-in plugin and no RuleConfig."""
        from seo_crawler.plugins import default_page_plugins
        from seo_crawler.site_plugins import default_site_plugins

        registry = cls()
        for plugin in [*default_page_plugins(), *default_site_plugins()]:
            registry.register(plugin)
        return registry

    @classmethod
    def default_with_config(cls) -> "PluginRegistry":
        """Built-in plugins with every available rule enabled."""
        registry = cls.default()
        registry.set_config(
            RuleConfig.enable_all([r.id for r in registry.get_available_rules()])
        )
        return registry
