"""Flattening engine: stateful registry metrics -> flat observations.

Per kind:
  gauges      one gauge observation when the value is numeric or boolean
  counters    one counter observation, name unchanged
  histograms  <name>.count counter + one gauge per STATS expansion
  meters      <name>.count counter + one gauge per RATES expansion (rate unit applied)
  timers      <name>.count counter + RATES gauges + STATS gauges (duration unit applied)

Kinds are emitted in the order above and identifiers within a kind in sorted
order, so a cycle's batch is deterministic for a given registry state.

No per-metric isolation: an exception from a resolver or a metric object
aborts the whole flatten call and is handled by the reporter.
"""
from __future__ import annotations

import math
import numbers
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from .expansions import RATES, STATS, Expansion, append_expansion, rate_value, snapshot_value
from .registry import Counter, Gauge, Histogram, Meter, RegistryView, Timer
from .resolvers import MetricInfo, ResolverChain
from .series import CounterObservation, GaugeObservation, Observation, Series
from .units import TimeUnit


def to_number(value: Any) -> int | float | None:
    """Coerce a gauge reading to a reportable number, or None to skip it.

    Booleans map to 1/0. Non-finite floats are not representable on the wire
    and are treated like non-numeric values.
    """
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, (numbers.Real, Decimal)):
        f = float(value)
        return f if math.isfinite(f) else None
    return None


class Flattener:
    def __init__(
        self,
        chain: ResolverChain,
        host: str | None = None,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
        stats: Sequence[Expansion] = STATS,
        rates: Sequence[Expansion] = RATES,
    ):
        self.chain = chain
        self.host = host
        self.rate_unit = rate_unit
        self.duration_unit = duration_unit
        self.stats = tuple(stats)
        self.rates = tuple(rates)
        self._rate_factor = rate_unit.seconds
        self._duration_nanos = duration_unit.nanos

    def convert_rate(self, rate: float) -> float:
        return rate * self._rate_factor

    def convert_duration(self, duration_ns: float) -> float:
        return float(duration_ns) / self._duration_nanos

    # --- observation helpers ---------------------------------------------------
    def _counter(self, name: str, count: int, timestamp: int, info: MetricInfo) -> CounterObservation:
        return CounterObservation(name, count, timestamp, self.host, info.tags)

    def _gauge(self, name: str, value: Any, timestamp: int, info: MetricInfo) -> GaugeObservation | None:
        number = to_number(value)
        if number is None:
            return None
        return GaugeObservation(name, number, timestamp, self.host, info.tags)

    def _count(self, info: MetricInfo, count: int, timestamp: int) -> CounterObservation:
        return self._counter(append_expansion(info.name, Expansion.COUNT), count, timestamp, info)

    def _rates(self, info: MetricInfo, metered: Meter, timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for exp in self.rates:
            obs = self._gauge(append_expansion(info.name, exp), self.convert_rate(rate_value(metered, exp)), timestamp, info)
            if obs is not None:
                out.append(obs)
        return out

    # --- per kind --------------------------------------------------------------
    def gauges(self, gauges: Mapping[str, Gauge], timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for identifier in sorted(gauges):
            value = gauges[identifier].value
            if to_number(value) is None:
                continue
            info = self.chain.resolve(identifier)
            obs = self._gauge(info.name, value, timestamp, info)
            if obs is not None:
                out.append(obs)
        return out

    def counters(self, counters: Mapping[str, Counter], timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for identifier in sorted(counters):
            info = self.chain.resolve(identifier)
            out.append(self._counter(info.name, counters[identifier].count, timestamp, info))
        return out

    def histograms(self, histograms: Mapping[str, Histogram], timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for identifier in sorted(histograms):
            histogram = histograms[identifier]
            info = self.chain.resolve(identifier)
            out.append(self._count(info, histogram.count, timestamp))
            snapshot = histogram.snapshot()
            for exp in self.stats:
                obs = self._gauge(append_expansion(info.name, exp), snapshot_value(snapshot, exp), timestamp, info)
                if obs is not None:
                    out.append(obs)
        return out

    def meters(self, meters: Mapping[str, Meter], timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for identifier in sorted(meters):
            meter = meters[identifier]
            info = self.chain.resolve(identifier)
            out.append(self._count(info, meter.count, timestamp))
            out.extend(self._rates(info, meter, timestamp))
        return out

    def timers(self, timers: Mapping[str, Timer], timestamp: int) -> list[Observation]:
        out: list[Observation] = []
        for identifier in sorted(timers):
            timer = timers[identifier]
            info = self.chain.resolve(identifier)
            out.append(self._count(info, timer.count, timestamp))
            out.extend(self._rates(info, timer, timestamp))
            snapshot = timer.snapshot()
            for exp in self.stats:
                duration = self.convert_duration(snapshot_value(snapshot, exp))
                obs = self._gauge(append_expansion(info.name, exp), duration, timestamp, info)
                if obs is not None:
                    out.append(obs)
        return out

    def flatten(self, view: RegistryView, timestamp: int) -> Series:
        series = Series()
        series.extend(self.gauges(view.gauges, timestamp))
        series.extend(self.counters(view.counters, timestamp))
        series.extend(self.histograms(view.histograms, timestamp))
        series.extend(self.meters(view.meters, timestamp))
        series.extend(self.timers(view.timers, timestamp))
        return series


__all__ = ["Flattener", "to_number"]
