from __future__ import annotations

import pytest

from metrics_relay.metrics.resolvers import (
    ClassesResolver,
    CommandResolver,
    GarbageCollectorResolver,
    IdentityResolver,
    MemoryPoolResolver,
    MemoryResolver,
    MetricInfo,
    MetricInfoResolver,
    PatternResolver,
    PrometheusLabelResolver,
    ResolverChain,
    ThreadCountResolver,
    ThreadPoolResolver,
    ThreadsResolver,
    command_resolvers,
    runtime_resolvers,
)
from metrics_relay.utils.exceptions import ResolutionError


@pytest.mark.parametrize('resolver,identifier,expected', [
    (GarbageCollectorResolver(), 'gc.gen2.collections', MetricInfo('gc.collections', ('generation:gen2',))),
    (MemoryResolver(), 'memory.heap.used', MetricInfo('memory.used', ('area:heap',))),
    (MemoryResolver(), 'memory.non-heap.committed', MetricInfo('memory.committed', ('area:non-heap',))),
    (MemoryPoolResolver(), 'memory.pools.arena.usage', MetricInfo('memory.pools.usage', ('pool:arena',))),
    (ThreadsResolver(), 'threads.blocked.count', MetricInfo('threads.count', ('state:blocked',))),
    (ThreadCountResolver(), 'threads.daemon.count', MetricInfo('threads.count', ('kind:daemon',))),
    (ClassesResolver(), 'modules.loaded', MetricInfo('runtime.loaded', ('kind:modules',))),
    (CommandResolver(), 'command.billing.charge.latency',
     MetricInfo('command.latency', ('group:billing', 'command:charge'))),
    (ThreadPoolResolver(), 'threadpool.io.active', MetricInfo('threadpool.active', ('pool:io',))),
])
def test_preset_resolution(resolver, identifier, expected):
    assert resolver.can_resolve(identifier)
    assert resolver.resolve(identifier) == expected


def test_presets_are_resolvers():
    for r in [*runtime_resolvers(), *command_resolvers(), PrometheusLabelResolver(), IdentityResolver()]:
        assert isinstance(r, MetricInfoResolver)


def test_memory_pools_not_claimed_by_memory_resolver():
    assert not MemoryResolver().can_resolve('memory.pools.arena.usage')


def test_pattern_requires_full_match():
    r = ThreadsResolver()
    assert not r.can_resolve('threads.blocked.count.extra')
    with pytest.raises(ResolutionError):
        r.resolve('threads.blocked.count.extra')


def test_custom_pattern_resolver():
    r = PatternResolver(r'db\.(?P<table>\w+)\.(?P<op>read|write)', 'db.{op}', ['table'])
    assert r.resolve('db.users.read') == MetricInfo('db.read', ('table:users',))


def test_optional_group_not_tagged():
    r = PatternResolver(r'svc(?:\.(?P<zone>[a-z]+))?\.hits', 'svc.hits', ['zone'])
    assert r.resolve('svc.hits') == MetricInfo('svc.hits', ())
    assert r.resolve('svc.eu.hits') == MetricInfo('svc.hits', ('zone:eu',))


def test_unknown_tag_group_rejected():
    with pytest.raises(ValueError):
        PatternResolver(r'a\.(?P<x>\w+)', 'a', ['y'])


def test_bad_name_template_raises_resolution_error():
    r = PatternResolver(r'a\.(?P<x>\w+)', 'a.{missing}')
    with pytest.raises(ResolutionError):
        r.resolve('a.b')


def test_prometheus_labels_to_tags():
    r = PrometheusLabelResolver()
    ident = 'http_requests{code="200",path="/a\\"b"}'
    assert r.can_resolve(ident)
    assert r.resolve(ident) == MetricInfo('http_requests', ('code:200', 'path:/a"b'))
    assert not r.can_resolve('http_requests')


def test_prometheus_malformed_labels():
    with pytest.raises(ResolutionError):
        PrometheusLabelResolver().resolve('x{code=200}')


def test_chain_first_match_wins():
    first = PatternResolver(r'threads\.(?P<k>\w+)\.count', 'first', ['k'])
    chain = ResolverChain([first, ThreadsResolver()])
    assert chain.find('threads.blocked.count') is first
    assert chain.resolve('threads.blocked.count').name == 'first'


def test_chain_fallback_is_identity():
    chain = ResolverChain(runtime_resolvers(), ['env:prod', 'application:api'])
    assert isinstance(chain.find('cache.hits'), IdentityResolver)
    assert chain.resolve('cache.hits') == MetricInfo('cache.hits', ('env:prod', 'application:api'))


def test_chain_without_global_tags():
    assert ResolverChain().resolve('x').tags == ()


def test_resolution_is_idempotent():
    chain = ResolverChain([GarbageCollectorResolver()], ['env:prod'])
    for ident in ('gc.gen1.collections', 'cache.hits'):
        first = chain.resolve(ident)
        second = chain.resolve(ident)
        assert first == second
        assert first.tags.count('env:prod') == 1
    assert chain.resolve('gc.gen1.collections').tags == ('generation:gen1', 'env:prod')
