from __future__ import annotations

import pytest

from metrics_relay.metrics.expansions import (
    RATE_EXPANSIONS,
    RATES,
    STATS,
    STATS_EXPANSIONS,
    Expansion,
    append_expansion,
    parse_expansions,
    rate_value,
    snapshot_value,
)
from metrics_relay.metrics.registry import StatsSnapshot
from tests._helpers import FakeMeter


def test_suffixes():
    assert append_expansion('req', Expansion.RATE_1_MINUTE) == 'req.1MinuteRate'
    assert append_expansion('req', Expansion.P999) == 'req.p999'
    assert str(Expansion.RATE_MEAN) == 'meanRate'


def test_default_sets():
    assert [e.value for e in STATS] == ['max', 'mean', 'min', 'p95', 'p99']
    assert [e.value for e in RATES] == ['1MinuteRate', '5MinuteRate', '15MinuteRate', 'meanRate']
    assert Expansion.COUNT not in STATS_EXPANSIONS | RATE_EXPANSIONS


def test_snapshot_value_reads_attribute():
    snap = StatsSnapshot(p98=4.5, stddev=1.5)
    assert snapshot_value(snap, Expansion.P98) == 4.5
    assert snapshot_value(snap, Expansion.STD_DEV) == 1.5
    with pytest.raises(ValueError):
        snapshot_value(snap, Expansion.RATE_MEAN)


def test_rate_value_reads_attribute():
    meter = FakeMeter(five_minute_rate=3)
    assert rate_value(meter, Expansion.RATE_5_MINUTE) == 3.0
    with pytest.raises(ValueError):
        rate_value(meter, Expansion.MAX)


def test_parse_expansions():
    assert parse_expansions(['p75', 'MEDIAN', 'max'], STATS_EXPANSIONS) == (Expansion.P75, Expansion.MEDIAN, Expansion.MAX)
    with pytest.raises(ValueError):
        parse_expansions(['meanRate'], STATS_EXPANSIONS)
    with pytest.raises(ValueError):
        parse_expansions(['p50'], STATS_EXPANSIONS)
