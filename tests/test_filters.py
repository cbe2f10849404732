from metrics_relay.metrics.filters import ALL, all_of, any_of, exclude, prefix_filter, regex_filter
from metrics_relay.metrics.registry import read_registry
from tests._helpers import FakeCounter, FakeGauge, FakeRegistry


def test_filter_helpers():
    app = prefix_filter('app.', 'web.')
    debug = regex_filter(r'\.debug$')
    assert ALL('anything', None)
    assert app('web.hits', None)
    assert not app('db.hits', None)
    assert all_of([app, exclude(debug)])('app.hits', None)
    assert not all_of([app, exclude(debug)])('app.hits.debug', None)
    assert any_of([app, debug])('db.debug', None)


def test_read_registry_filters_and_sorts():
    reg = FakeRegistry()
    reg.gauge_map.update({'app.z': FakeGauge(1), 'app.a': FakeGauge(2), 'other': FakeGauge(3)})
    reg.counter_map['app.c'] = FakeCounter(1)
    view = read_registry(reg, prefix_filter('app.'))
    assert list(view.gauges) == ['app.a', 'app.z']
    assert list(view.counters) == ['app.c']
    assert not view.is_empty()
    assert read_registry(FakeRegistry(), ALL).is_empty()
