"""Expansion tables.

An expansion is a derived sub-metric appended to a resolved name as
``<name>.<suffix>``. Snapshot-bearing metrics (histograms, timers) expand into
STATS; metered metrics (meters, timers) expand into RATES. Every expanded
metric also carries a ``.count`` counter.

The shipped STATS set is intentionally reduced (no median/stddev/p75/p98/p999)
to bound series cardinality on the collector; reporters may override it.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class Expansion(str, Enum):
    COUNT = "count"
    RATE_MEAN = "meanRate"
    RATE_1_MINUTE = "1MinuteRate"
    RATE_5_MINUTE = "5MinuteRate"
    RATE_15_MINUTE = "15MinuteRate"
    MIN = "min"
    MEAN = "mean"
    MAX = "max"
    STD_DEV = "stddev"
    MEDIAN = "median"
    P75 = "p75"
    P95 = "p95"
    P98 = "p98"
    P99 = "p99"
    P999 = "p999"

    def __str__(self) -> str:
        return self.value


STATS: tuple[Expansion, ...] = (
    Expansion.MAX,
    Expansion.MEAN,
    Expansion.MIN,
    Expansion.P95,
    Expansion.P99,
)

RATES: tuple[Expansion, ...] = (
    Expansion.RATE_1_MINUTE,
    Expansion.RATE_5_MINUTE,
    Expansion.RATE_15_MINUTE,
    Expansion.RATE_MEAN,
)

# Expansion -> attribute on a Snapshot
_SNAPSHOT_ATTRS: dict[Expansion, str] = {
    Expansion.MAX: "max",
    Expansion.MEAN: "mean",
    Expansion.MIN: "min",
    Expansion.STD_DEV: "stddev",
    Expansion.MEDIAN: "median",
    Expansion.P75: "p75",
    Expansion.P95: "p95",
    Expansion.P98: "p98",
    Expansion.P99: "p99",
    Expansion.P999: "p999",
}

# Expansion -> attribute on a Meter / Timer
_RATE_ATTRS: dict[Expansion, str] = {
    Expansion.RATE_1_MINUTE: "one_minute_rate",
    Expansion.RATE_5_MINUTE: "five_minute_rate",
    Expansion.RATE_15_MINUTE: "fifteen_minute_rate",
    Expansion.RATE_MEAN: "mean_rate",
}

STATS_EXPANSIONS = frozenset(_SNAPSHOT_ATTRS)
RATE_EXPANSIONS = frozenset(_RATE_ATTRS)


def append_expansion(name: str, expansion: Expansion) -> str:
    return f"{name}.{expansion.value}"


def snapshot_value(snapshot: Any, expansion: Expansion) -> float:
    """Read the statistic for `expansion` from a histogram/timer snapshot."""
    try:
        attr = _SNAPSHOT_ATTRS[expansion]
    except KeyError:
        raise ValueError(f"Unsupported snapshot expansion {expansion}") from None
    return getattr(snapshot, attr)


def rate_value(metered: Any, expansion: Expansion) -> float:
    """Read the per-second rate for `expansion` from a meter/timer."""
    try:
        attr = _RATE_ATTRS[expansion]
    except KeyError:
        raise ValueError(f"Unsupported meter expansion {expansion}") from None
    return float(getattr(metered, attr))


def parse_expansions(values: list[str] | tuple[str, ...], allowed: frozenset[Expansion]) -> tuple[Expansion, ...]:
    """Map suffix strings (or enum names) onto expansions from `allowed`, keeping order."""
    out: list[Expansion] = []
    for raw in values:
        exp = _lookup(raw)
        if exp not in allowed:
            raise ValueError(f"expansion {raw!r} is not valid here")
        out.append(exp)
    return tuple(out)


def _lookup(raw: str) -> Expansion:
    for exp in Expansion:
        if raw in (exp.value, exp.name, exp.name.lower()):
            return exp
    raise ValueError(f"unknown expansion {raw!r}")


__all__ = [
    "Expansion",
    "STATS",
    "RATES",
    "STATS_EXPANSIONS",
    "RATE_EXPANSIONS",
    "append_expansion",
    "snapshot_value",
    "rate_value",
    "parse_expansions",
]
