"""Registry read interface.

The reporter never writes to the metrics registry; it only reads five
mappings of identifier -> metric object. Anything satisfying these protocols
can be reported (an in-process registry, the Prometheus adapter in
`prometheus_source`, or plain test fakes).

Snapshot statistics for timers are expected in nanoseconds; meter and timer
rates in events per second.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol, runtime_checkable

from .filters import MetricFilter


@runtime_checkable
class Snapshot(Protocol):
    max: float
    mean: float
    min: float
    stddev: float
    median: float
    p75: float
    p95: float
    p98: float
    p99: float
    p999: float


@runtime_checkable
class Gauge(Protocol):
    @property
    def value(self) -> Any: ...


@runtime_checkable
class Counter(Protocol):
    @property
    def count(self) -> int: ...


@runtime_checkable
class Histogram(Protocol):
    @property
    def count(self) -> int: ...

    def snapshot(self) -> Snapshot: ...


@runtime_checkable
class Meter(Protocol):
    @property
    def count(self) -> int: ...
    @property
    def one_minute_rate(self) -> float: ...
    @property
    def five_minute_rate(self) -> float: ...
    @property
    def fifteen_minute_rate(self) -> float: ...
    @property
    def mean_rate(self) -> float: ...


@runtime_checkable
class Timer(Meter, Protocol):
    def snapshot(self) -> Snapshot: ...


@runtime_checkable
class MetricRegistry(Protocol):
    def gauges(self) -> Mapping[str, Gauge]: ...
    def counters(self) -> Mapping[str, Counter]: ...
    def histograms(self) -> Mapping[str, Histogram]: ...
    def meters(self) -> Mapping[str, Meter]: ...
    def timers(self) -> Mapping[str, Timer]: ...


@dataclass(frozen=True)
class StatsSnapshot:
    """Plain value snapshot; registries may return this or any Snapshot-like object."""

    max: float = 0.0
    mean: float = 0.0
    min: float = 0.0
    stddev: float = 0.0
    median: float = 0.0
    p75: float = 0.0
    p95: float = 0.0
    p98: float = 0.0
    p99: float = 0.0
    p999: float = 0.0


class RegistryView(NamedTuple):
    """Filtered, key-sorted copy of the five registry mappings for one cycle."""

    gauges: dict[str, Any]
    counters: dict[str, Any]
    histograms: dict[str, Any]
    meters: dict[str, Any]
    timers: dict[str, Any]

    def is_empty(self) -> bool:
        return not any(self)


def _select(metrics: Mapping[str, Any], metric_filter: MetricFilter) -> dict[str, Any]:
    return {name: metrics[name] for name in sorted(metrics) if metric_filter(name, metrics[name])}


def read_registry(registry: MetricRegistry, metric_filter: MetricFilter) -> RegistryView:
    """Pull every kind from `registry`, keeping entries the filter accepts."""
    return RegistryView(
        gauges=_select(registry.gauges(), metric_filter),
        counters=_select(registry.counters(), metric_filter),
        histograms=_select(registry.histograms(), metric_filter),
        meters=_select(registry.meters(), metric_filter),
        timers=_select(registry.timers(), metric_filter),
    )


__all__ = [
    "Snapshot",
    "Gauge",
    "Counter",
    "Histogram",
    "Meter",
    "Timer",
    "MetricRegistry",
    "StatsSnapshot",
    "RegistryView",
    "read_registry",
]
