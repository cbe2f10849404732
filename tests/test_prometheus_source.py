from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Summary

from metrics_relay.metrics.prometheus_source import PrometheusRegistry, estimate_snapshot, identifier_for
from metrics_relay.metrics.reporter import RestMetricsReporter
from metrics_relay.metrics.resolvers import PrometheusLabelResolver


@pytest.fixture()
def prom():
    return CollectorRegistry()


def test_identifier_for_sorts_and_escapes():
    assert identifier_for('up', {}) == 'up'
    assert identifier_for('req', {'b': '2', 'a': 'x"y'}) == 'req{a="x\\"y",b="2"}'


def test_gauges_and_counters(prom):
    Gauge('temperature', 'room temperature', registry=prom).set(21.5)
    c = Counter('jobs', 'processed jobs', ['queue'], registry=prom)
    c.labels(queue='a').inc(3)
    c.labels(queue='b').inc()
    source = PrometheusRegistry(prom)
    assert source.gauges()['temperature'].value == 21.5
    counters = source.counters()
    assert counters['jobs{queue="a"}'].count == 3
    assert counters['jobs{queue="b"}'].count == 1
    assert source.meters() == {}
    assert source.timers() == {}


def test_histogram_snapshot_from_buckets(prom):
    h = Histogram('latency', 'request latency', buckets=(1, 2, 5), registry=prom)
    for v in (0.5, 0.5, 1.5, 1.5, 1.5, 3, 3, 3, 3, 10):
        h.observe(v)
    (hist,) = PrometheusRegistry(prom).histograms().values()
    snap = hist.snapshot()
    assert hist.count == 10
    assert snap.mean == pytest.approx(2.75)
    assert snap.median == pytest.approx(2.0)
    assert snap.p75 == pytest.approx(3.875)
    # ranks in the +Inf bucket clamp to the highest finite bound
    assert snap.p95 == pytest.approx(5.0)
    assert snap.max == pytest.approx(5.0)
    assert snap.min == pytest.approx(0.0)


def test_summary_count_and_mean(prom):
    s = Summary('payload_bytes', 'payload size', registry=prom)
    s.observe(4)
    s.observe(6)
    hist = PrometheusRegistry(prom).histograms()['payload_bytes']
    assert hist.count == 2
    assert hist.snapshot().mean == pytest.approx(5.0)


def test_estimate_snapshot_empty():
    snap = estimate_snapshot([(1.0, 0.0), (float('inf'), 0.0)], 0, 0.0)
    assert snap.mean == 0.0 and snap.max == 0.0


def test_reporter_over_prometheus_registry(prom, publisher, clock):
    Counter('jobs', 'processed jobs', ['queue'], registry=prom).labels(queue='a').inc(2)
    rep = RestMetricsReporter('http://collector.local/series', PrometheusRegistry(prom), publisher,
                              resolvers=[PrometheusLabelResolver()], tags=['env:test'], clock=clock)
    rep.report()
    (_, series), = publisher.calls
    (obs,) = series
    assert obs.name == 'jobs'
    assert obs.type == 'counter'
    assert obs.value == 2
    assert obs.tags == ('queue:a', 'env:test')


def test_fractional_counter_rounded(prom):
    Counter('bytes_sent', 'bytes sent', registry=prom).inc(2.6)
    assert PrometheusRegistry(prom).counters()['bytes_sent'].count == 3
