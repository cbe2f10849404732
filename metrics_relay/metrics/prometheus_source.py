"""Read a prometheus_client CollectorRegistry through the registry interface.

Mapping of Prometheus family types onto the five reporter kinds:

  gauge / unknown   -> gauges      (one entry per labelled sample)
  counter           -> counters    (the `_total` sample, rounded to int)
  histogram         -> histograms  (count from `_count`; snapshot estimated
                                    from the cumulative buckets)
  summary           -> histograms  (count and mean; quantile samples when the
                                    collector exposes them)
  info / stateset / enum / gaugehistogram are not reported.

Prometheus has no meter or timer types, so those mappings are always empty.

Identifiers are ``family`` for unlabelled samples and
``family{a="x",b="y"}`` (labels sorted) otherwise; pair the adapter with
`PrometheusLabelResolver` to turn the labels into tags.

Every accessor walks `registry.collect()` afresh, so values reflect the
registry at call time.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.metrics_core import Metric

from .registry import StatsSnapshot

logger = logging.getLogger(__name__)

_QUANTILE_ATTRS = {
    0.5: "median",
    0.75: "p75",
    0.95: "p95",
    0.98: "p98",
    0.99: "p99",
    0.999: "p999",
}


def _escape(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


def identifier_for(family: str, labels: dict[str, str]) -> str:
    if not labels:
        return family
    body = ",".join(f'{k}="{_escape(str(v))}"' for k, v in sorted(labels.items()))
    return f"{family}{{{body}}}"


@dataclass(frozen=True)
class SampledGauge:
    value: float


@dataclass(frozen=True)
class SampledCounter:
    count: int


@dataclass(frozen=True)
class SampledHistogram:
    count: int
    stats: StatsSnapshot

    def snapshot(self) -> StatsSnapshot:
        return self.stats


def _bucket_quantile(q: float, buckets: list[tuple[float, float]], count: float) -> float:
    """histogram_quantile style linear interpolation over cumulative buckets."""
    rank = q * count
    prev_bound: float | None = None
    prev_count = 0.0
    for bound, cumulative in buckets:
        if cumulative >= rank:
            if math.isinf(bound):
                return prev_bound if prev_bound is not None else 0.0
            if cumulative == prev_count:
                return bound
            # first bucket interpolates from zero (or from its own bound when negative)
            lower = prev_bound if prev_bound is not None else min(0.0, bound)
            return lower + (bound - lower) * (rank - prev_count) / (cumulative - prev_count)
        prev_bound, prev_count = bound, cumulative
    return prev_bound if prev_bound is not None else 0.0


def estimate_snapshot(buckets: Iterable[tuple[float, float]], count: float, total: float) -> StatsSnapshot:
    """Approximate a value snapshot from cumulative (upper bound, count) buckets."""
    ordered = sorted(buckets)
    if count <= 0 or not ordered:
        return StatsSnapshot()
    finite = [b for b, _ in ordered if not math.isinf(b)]
    top_finite = finite[-1] if finite else 0.0

    # Lower / upper edges of the populated range
    min_v = 0.0
    prev_bound, prev_count = None, 0.0
    for bound, cumulative in ordered:
        if cumulative > prev_count:
            min_v = prev_bound if prev_bound is not None else min(0.0, bound)
            break
        prev_bound, prev_count = bound, cumulative
    max_v = top_finite
    for bound, cumulative in ordered:
        if cumulative >= count:
            max_v = top_finite if math.isinf(bound) else bound
            break

    mean = total / count
    # Spread estimated from bucket midpoints
    var_acc = 0.0
    prev_bound_f, prev_count = 0.0, 0.0
    for bound, cumulative in ordered:
        n = cumulative - prev_count
        upper = top_finite if math.isinf(bound) else bound
        mid = (prev_bound_f + upper) / 2.0
        var_acc += n * (mid - mean) ** 2
        prev_bound_f, prev_count = upper, cumulative
    stddev = math.sqrt(var_acc / count)

    q = {attr: _bucket_quantile(quant, ordered, count) for quant, attr in _QUANTILE_ATTRS.items()}
    return StatsSnapshot(max=max_v, mean=mean, min=min_v, stddev=stddev, **q)


def _base_labels(labels: dict[str, str], drop: str) -> dict[str, str]:
    return {k: v for k, v in labels.items() if k != drop}


def _key(labels: dict[str, str]) -> tuple[tuple[str, str], ...]:
    return tuple(sorted(labels.items()))


class PrometheusRegistry:
    """Registry interface over a `prometheus_client` CollectorRegistry."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self._registry = registry

    def _families(self, *types: str) -> list[Metric]:
        return [fam for fam in self._registry.collect() if fam.type in types]

    def gauges(self) -> dict[str, SampledGauge]:
        out: dict[str, SampledGauge] = {}
        for fam in self._families("gauge", "unknown"):
            for sample in fam.samples:
                out[identifier_for(sample.name, sample.labels)] = SampledGauge(sample.value)
        return out

    def counters(self) -> dict[str, SampledCounter]:
        out: dict[str, SampledCounter] = {}
        for fam in self._families("counter"):
            for sample in fam.samples:
                if sample.name != f"{fam.name}_total":
                    continue
                out[identifier_for(fam.name, sample.labels)] = SampledCounter(int(round(sample.value)))
        return out

    def histograms(self) -> dict[str, SampledHistogram]:
        out: dict[str, SampledHistogram] = {}
        for fam in self._families("histogram"):
            out.update(self._histogram_family(fam))
        for fam in self._families("summary"):
            out.update(self._summary_family(fam))
        logger.debug("prometheus histogram/summary series read: %d", len(out))
        return out

    def meters(self) -> dict[str, Any]:
        return {}

    def timers(self) -> dict[str, Any]:
        return {}

    def _histogram_family(self, fam: Metric) -> dict[str, SampledHistogram]:
        groups: dict[tuple[tuple[str, str], ...], dict[str, Any]] = {}
        for sample in fam.samples:
            if sample.name == f"{fam.name}_bucket":
                labels = _base_labels(sample.labels, "le")
                g = groups.setdefault(_key(labels), {"labels": labels, "buckets": [], "count": 0.0, "sum": 0.0})
                g["buckets"].append((float(sample.labels["le"]), sample.value))
            elif sample.name in (f"{fam.name}_count", f"{fam.name}_sum"):
                g = groups.setdefault(_key(sample.labels), {"labels": dict(sample.labels), "buckets": [], "count": 0.0, "sum": 0.0})
                g["count" if sample.name.endswith("_count") else "sum"] = sample.value
        out: dict[str, SampledHistogram] = {}
        for g in groups.values():
            snapshot = estimate_snapshot(g["buckets"], g["count"], g["sum"])
            out[identifier_for(fam.name, g["labels"])] = SampledHistogram(int(g["count"]), snapshot)
        return out

    def _summary_family(self, fam: Metric) -> dict[str, SampledHistogram]:
        groups: dict[tuple[tuple[str, str], ...], dict[str, Any]] = {}
        for sample in fam.samples:
            if sample.name == fam.name and "quantile" in sample.labels:
                labels = _base_labels(sample.labels, "quantile")
                g = groups.setdefault(_key(labels), {"labels": labels, "quantiles": {}, "count": 0.0, "sum": 0.0})
                g["quantiles"][float(sample.labels["quantile"])] = sample.value
            elif sample.name in (f"{fam.name}_count", f"{fam.name}_sum"):
                g = groups.setdefault(_key(sample.labels), {"labels": dict(sample.labels), "quantiles": {}, "count": 0.0, "sum": 0.0})
                g["count" if sample.name.endswith("_count") else "sum"] = sample.value
        out: dict[str, SampledHistogram] = {}
        for g in groups.values():
            count = g["count"]
            fields = {attr: g["quantiles"][q] for q, attr in _QUANTILE_ATTRS.items() if q in g["quantiles"]}
            mean = g["sum"] / count if count else 0.0
            out[identifier_for(fam.name, g["labels"])] = SampledHistogram(int(count), StatsSnapshot(mean=mean, **fields))
        return out


__all__ = [
    "PrometheusRegistry",
    "SampledGauge",
    "SampledCounter",
    "SampledHistogram",
    "estimate_snapshot",
    "identifier_for",
]
