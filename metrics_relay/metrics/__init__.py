"""Metric flattening, naming and reporting.

Public facade:

    from metrics_relay.metrics import RestMetricsReporter, ResolverChain, Series
"""
from .expansions import RATES, STATS, Expansion, append_expansion
from .filters import ALL, MetricFilter, prefix_filter, regex_filter
from .flatten import Flattener, to_number
from .registry import MetricRegistry, RegistryView, StatsSnapshot, read_registry
from .reporter import MIN_REPORT_INTERVAL_MILLIS, Publisher, ReporterStats, RestMetricsReporter
from .resolvers import (
    IdentityResolver,
    MetricInfo,
    MetricInfoResolver,
    PatternResolver,
    PrometheusLabelResolver,
    ResolverChain,
    command_resolvers,
    runtime_resolvers,
)
from .scheduler import ReportingScheduler
from .series import CounterObservation, GaugeObservation, Observation, Series
from .units import TimeUnit

__all__ = [
    "RATES",
    "STATS",
    "Expansion",
    "append_expansion",
    "ALL",
    "MetricFilter",
    "prefix_filter",
    "regex_filter",
    "Flattener",
    "to_number",
    "MetricRegistry",
    "RegistryView",
    "StatsSnapshot",
    "read_registry",
    "MIN_REPORT_INTERVAL_MILLIS",
    "Publisher",
    "ReporterStats",
    "RestMetricsReporter",
    "IdentityResolver",
    "MetricInfo",
    "MetricInfoResolver",
    "PatternResolver",
    "PrometheusLabelResolver",
    "ResolverChain",
    "command_resolvers",
    "runtime_resolvers",
    "ReportingScheduler",
    "CounterObservation",
    "GaugeObservation",
    "Observation",
    "Series",
    "TimeUnit",
]
