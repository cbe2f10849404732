"""Reporter configuration.

Three ways to arrive at a `RestMetricsReporter`:

* `ReporterBuilder(url, registry)` - fluent options, then `build()`;
* `ReporterConfig(...)` + `build_reporter(config, registry)`;
* `config_from_env()` for deployments configured through the environment.

Every path validates once, at construction: a malformed URL, a non-positive
timeout or an unknown unit raises `ConfigError` immediately instead of
surfacing as a swallowed failure on every reporting cycle.

Environment variables (prefix METRICS_RELAY_ by default):
  URL                 collector endpoint (required)
  HOST                host field on every observation
  ENV / GROUP / APPLICATION   become env:/group:/application: tags
  TAGS                comma list of extra label:value tags
  CONNECT_TIMEOUT_MS / SOCKET_TIMEOUT_MS   default 2000
  RATE_UNIT / DURATION_UNIT                default seconds / milliseconds
  STATS_EXPANSIONS / RATE_EXPANSIONS       comma lists replacing the default sets
  RUNTIME_RESOLVERS   truthy -> add the runtime resolver presets
  PROMETHEUS_LABELS   truthy -> split name{k="v"} identifiers into tags
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from urllib.parse import urlparse

from ..metrics.expansions import RATE_EXPANSIONS, RATES, STATS, STATS_EXPANSIONS, Expansion, parse_expansions
from ..metrics.filters import ALL, MetricFilter
from ..metrics.registry import MetricRegistry
from ..metrics.reporter import Publisher, RestMetricsReporter
from ..metrics.resolvers import (
    ClassesResolver,
    GarbageCollectorResolver,
    MemoryPoolResolver,
    MemoryResolver,
    MetricInfoResolver,
    PrometheusLabelResolver,
    ThreadCountResolver,
    ThreadsResolver,
    command_resolvers,
    runtime_resolvers,
)
from ..metrics.units import TimeUnit
from ..transport.http_publisher import DEFAULT_CONNECT_TIMEOUT_MS, DEFAULT_SOCKET_TIMEOUT_MS, HttpPublisher
from ..utils.env_flags import env_list, env_str, is_truthy_env
from ..utils.exceptions import ConfigError
from ..utils.timeutils import DEFAULT_CLOCK, Clock

logger = logging.getLogger(__name__)

ENV_PREFIX = "METRICS_RELAY_"


def _label_tag(label: str, value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return f"{label}:{value}"


@dataclass(frozen=True)
class ReporterConfig:
    url: str
    host: str | None = None
    env: str | None = None
    group: str | None = None
    application: str | None = None
    tags: tuple[str, ...] = ()
    metric_filter: MetricFilter = ALL
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    socket_timeout_ms: int = DEFAULT_SOCKET_TIMEOUT_MS
    resolvers: tuple[MetricInfoResolver, ...] = ()
    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    stats_expansions: tuple[Expansion, ...] = STATS
    rate_expansions: tuple[Expansion, ...] = RATES
    name: str = field(default="rest-metrics-reporter")

    def global_tags(self) -> list[str]:
        """env/group/application tags for non-blank values plus explicit tags, de-duplicated."""
        tag_set: set[str] = set()
        for label, value in (("env", self.env), ("group", self.group), ("application", self.application)):
            tag = _label_tag(label, value)
            if tag:
                tag_set.add(tag)
        tag_set.update(t for t in self.tags if t)
        return sorted(tag_set)

    def validate(self) -> ReporterConfig:
        parsed = urlparse(self.url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"invalid collector url: {self.url!r}")
        for attr in ("connect_timeout_ms", "socket_timeout_ms"):
            val = getattr(self, attr)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ConfigError(f"{attr} must be a positive integer (got {val!r})")
        if not isinstance(self.rate_unit, TimeUnit) or not isinstance(self.duration_unit, TimeUnit):
            raise ConfigError("rate_unit and duration_unit must be TimeUnit members")
        if any(e not in STATS_EXPANSIONS for e in self.stats_expansions):
            raise ConfigError(f"stats_expansions may only contain snapshot statistics: {self.stats_expansions}")
        if any(e not in RATE_EXPANSIONS for e in self.rate_expansions):
            raise ConfigError(f"rate_expansions may only contain rates: {self.rate_expansions}")
        if not callable(self.metric_filter):
            raise ConfigError("metric_filter must be callable")
        for resolver in self.resolvers:
            if not (callable(getattr(resolver, "can_resolve", None)) and callable(getattr(resolver, "resolve", None))):
                raise ConfigError(f"not a resolver: {resolver!r}")
        return self


def build_reporter(
    config: ReporterConfig,
    registry: MetricRegistry,
    publisher: Publisher | None = None,
    clock: Clock = DEFAULT_CLOCK,
) -> RestMetricsReporter:
    config.validate()
    if publisher is None:
        publisher = HttpPublisher(config.connect_timeout_ms, config.socket_timeout_ms)
    tags = config.global_tags()
    logger.info("metrics reporter %s -> %s host=%s tags=%s resolvers=%d",
                config.name, config.url, config.host, tags, len(config.resolvers))
    return RestMetricsReporter(
        config.url,
        registry,
        publisher,
        host=config.host,
        tags=tags,
        resolvers=config.resolvers,
        metric_filter=config.metric_filter,
        rate_unit=config.rate_unit,
        duration_unit=config.duration_unit,
        stats_expansions=config.stats_expansions,
        rate_expansions=config.rate_expansions,
        clock=clock,
        name=config.name,
    )


class ReporterBuilder:
    """Fluent construction mirroring `ReporterConfig` fields."""

    def __init__(self, url: str, registry: MetricRegistry):
        self._config = ReporterConfig(url=url)
        self._registry = registry
        self._resolvers: list[MetricInfoResolver] = []
        self._publisher: Publisher | None = None
        self._clock: Clock = DEFAULT_CLOCK

    def _set(self, **changes) -> ReporterBuilder:
        self._config = replace(self._config, **changes)
        return self

    def with_host(self, host: str | None) -> ReporterBuilder:
        return self._set(host=host)

    def with_env(self, env: str | None) -> ReporterBuilder:
        return self._set(env=env)

    def with_group(self, group: str | None) -> ReporterBuilder:
        return self._set(group=group)

    def with_application(self, application: str | None) -> ReporterBuilder:
        return self._set(application=application)

    def with_tags(self, tags: Iterable[str] | None) -> ReporterBuilder:
        return self._set(tags=tuple(tags or ()))

    def with_filter(self, metric_filter: MetricFilter) -> ReporterBuilder:
        return self._set(metric_filter=metric_filter)

    def with_connect_timeout(self, millis: int) -> ReporterBuilder:
        return self._set(connect_timeout_ms=millis)

    def with_socket_timeout(self, millis: int) -> ReporterBuilder:
        return self._set(socket_timeout_ms=millis)

    def with_rate_unit(self, unit: TimeUnit | str) -> ReporterBuilder:
        return self._set(rate_unit=_parse_unit(unit))

    def with_duration_unit(self, unit: TimeUnit | str) -> ReporterBuilder:
        return self._set(duration_unit=_parse_unit(unit))

    def with_stats_expansions(self, expansions: Sequence[Expansion]) -> ReporterBuilder:
        return self._set(stats_expansions=tuple(expansions))

    def with_rate_expansions(self, expansions: Sequence[Expansion]) -> ReporterBuilder:
        return self._set(rate_expansions=tuple(expansions))

    def with_name(self, name: str) -> ReporterBuilder:
        return self._set(name=name)

    # --- resolvers (appended in call order) ------------------------------------
    def with_resolvers(self, resolvers: Iterable[MetricInfoResolver]) -> ReporterBuilder:
        self._resolvers.extend(resolvers)
        return self

    def with_runtime_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers(runtime_resolvers())

    def with_classes_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers([ClassesResolver()])

    def with_gc_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers([GarbageCollectorResolver()])

    def with_memory_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers([MemoryResolver(), MemoryPoolResolver()])

    def with_thread_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers([ThreadsResolver(), ThreadCountResolver()])

    def with_command_resolvers(self) -> ReporterBuilder:
        return self.with_resolvers(command_resolvers())

    def with_prometheus_label_resolver(self) -> ReporterBuilder:
        return self.with_resolvers([PrometheusLabelResolver()])

    # --- collaborators ----------------------------------------------------------
    def with_publisher(self, publisher: Publisher) -> ReporterBuilder:
        self._publisher = publisher
        return self

    def with_clock(self, clock: Clock) -> ReporterBuilder:
        self._clock = clock
        return self

    def config(self) -> ReporterConfig:
        return replace(self._config, resolvers=tuple(self._resolvers))

    def build(self) -> RestMetricsReporter:
        return build_reporter(self.config(), self._registry, self._publisher, self._clock)


def _parse_unit(unit: TimeUnit | str) -> TimeUnit:
    try:
        return TimeUnit.parse(unit)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {raw!r})") from None


def _env_expansions(name: str, allowed: frozenset[Expansion], default: tuple[Expansion, ...]) -> tuple[Expansion, ...]:
    raw = env_list(name)
    if not raw:
        return default
    try:
        return parse_expansions(raw, allowed)
    except ValueError as e:
        raise ConfigError(f"{name}: {e}") from e


def config_from_env(prefix: str = ENV_PREFIX) -> ReporterConfig:
    """Build a validated `ReporterConfig` from `<prefix>*` environment variables."""
    url = env_str(prefix + "URL")
    if url is None:
        raise ConfigError(f"{prefix}URL is not set")
    resolvers: list[MetricInfoResolver] = []
    if is_truthy_env(prefix + "PROMETHEUS_LABELS"):
        resolvers.append(PrometheusLabelResolver())
    if is_truthy_env(prefix + "RUNTIME_RESOLVERS"):
        resolvers.extend(runtime_resolvers())
    cfg = ReporterConfig(
        url=url,
        host=env_str(prefix + "HOST"),
        env=env_str(prefix + "ENV"),
        group=env_str(prefix + "GROUP"),
        application=env_str(prefix + "APPLICATION"),
        tags=tuple(env_list(prefix + "TAGS")),
        connect_timeout_ms=_env_int(prefix + "CONNECT_TIMEOUT_MS", DEFAULT_CONNECT_TIMEOUT_MS),
        socket_timeout_ms=_env_int(prefix + "SOCKET_TIMEOUT_MS", DEFAULT_SOCKET_TIMEOUT_MS),
        resolvers=tuple(resolvers),
        rate_unit=_parse_unit(env_str(prefix + "RATE_UNIT") or TimeUnit.SECONDS),
        duration_unit=_parse_unit(env_str(prefix + "DURATION_UNIT") or TimeUnit.MILLISECONDS),
        stats_expansions=_env_expansions(prefix + "STATS_EXPANSIONS", STATS_EXPANSIONS, STATS),
        rate_expansions=_env_expansions(prefix + "RATE_EXPANSIONS", RATE_EXPANSIONS, RATES),
    )
    return cfg.validate()


__all__ = [
    "ENV_PREFIX",
    "ReporterConfig",
    "ReporterBuilder",
    "build_reporter",
    "config_from_env",
]
