"""REST metrics reporter.

One `report()` call is one cycle:

  1. read the registry through the metric filter
  2. debounce: a cycle starting less than MIN_REPORT_INTERVAL_MILLIS after the
     previous attempt is dropped without touching cadence state
  3. flatten every kind with one shared epoch-seconds timestamp
  4. publish the batch (skipped when empty)
  5. record the attempt time, whatever the outcome of 3-4

Errors raised by resolvers, metric objects or the publisher never leave the
cycle; they are logged and the next scheduled cycle acts as the retry.
Transport failures log at WARNING, anything else (a resolver or metric bug)
at ERROR, both with traceback.

Single caller assumed: `last_run_millis` is not protected by a lock. Callers
that invoke `report()` from several threads must serialize the calls.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ..utils.exceptions import PublishError
from ..utils.timeutils import DEFAULT_CLOCK, Clock, to_epoch_seconds
from .expansions import RATES, STATS, Expansion
from .filters import ALL, MetricFilter
from .flatten import Flattener
from .registry import MetricRegistry, RegistryView, read_registry
from .resolvers import MetricInfoResolver, ResolverChain
from .series import Series
from .units import TimeUnit

logger = logging.getLogger(__name__)

MIN_REPORT_INTERVAL_MILLIS = 1000

_OPERATIONAL_ERRORS: tuple[type[BaseException], ...] = (
    PublishError,
    requests.RequestException,
    ConnectionError,
    TimeoutError,
)


class Publisher(Protocol):
    def publish(self, url: str, series: Series) -> None: ...


@dataclass
class ReporterStats:
    """Per-instance outcome counters (not thread-safe, same as the cycle itself)."""

    published: int = 0
    skipped_too_soon: int = 0
    skipped_empty: int = 0
    failed: int = 0
    last_batch_size: int = 0


class RestMetricsReporter:
    def __init__(
        self,
        url: str,
        registry: MetricRegistry,
        publisher: Publisher,
        *,
        host: str | None = None,
        tags: Iterable[str] | None = None,
        resolvers: Iterable[MetricInfoResolver] | None = None,
        metric_filter: MetricFilter = ALL,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
        stats_expansions: Sequence[Expansion] = STATS,
        rate_expansions: Sequence[Expansion] = RATES,
        clock: Clock = DEFAULT_CLOCK,
        name: str = "rest-metrics-reporter",
    ):
        self.url = url
        self.name = name
        self.registry = registry
        self.publisher = publisher
        self.host = host
        self.metric_filter = metric_filter
        self.clock = clock
        self.chain = ResolverChain(resolvers, tags)
        self.flattener = Flattener(
            self.chain,
            host=host,
            rate_unit=rate_unit,
            duration_unit=duration_unit,
            stats=stats_expansions,
            rates=rate_expansions,
        )
        self.last_run_millis = 0
        self.stats = ReporterStats()

    @property
    def tags(self) -> tuple[str, ...]:
        return self.chain.global_tags

    def report(self) -> None:
        """Run one reporting cycle against the configured registry."""
        try:
            view = read_registry(self.registry, self.metric_filter)
        except Exception:  # noqa: BLE001 - a reporting failure must not reach the scheduler
            logger.error("%s: failed reading metrics registry", self.name, exc_info=True)
            self.stats.failed += 1
            return
        self.report_metrics(*view)

    def report_metrics(
        self,
        gauges: Mapping[str, Any] | None = None,
        counters: Mapping[str, Any] | None = None,
        histograms: Mapping[str, Any] | None = None,
        meters: Mapping[str, Any] | None = None,
        timers: Mapping[str, Any] | None = None,
    ) -> None:
        now = self.clock.time_millis()
        # prevent a burst of cycles from backing up on the collector
        if now - self.last_run_millis < MIN_REPORT_INTERVAL_MILLIS:
            logger.info("%s: skipping metrics reporting to endpoint (last run %d ms ago)",
                        self.name, now - self.last_run_millis)
            self.stats.skipped_too_soon += 1
            return
        try:
            timestamp = to_epoch_seconds(now)
            view = RegistryView(
                dict(gauges or {}),
                dict(counters or {}),
                dict(histograms or {}),
                dict(meters or {}),
                dict(timers or {}),
            )
            series = self.flattener.flatten(view, timestamp)
            self.stats.last_batch_size = len(series)
            if series.is_empty():
                self.stats.skipped_empty += 1
                return
            self.publisher.publish(self.url, series)
            self.stats.published += 1
            logger.debug("%s: published %d observations to %s", self.name, len(series), self.url)
        except _OPERATIONAL_ERRORS:
            self.stats.failed += 1
            logger.warning("%s: error reporting metrics to http rest endpoint %s", self.name, self.url, exc_info=True)
        except Exception:  # noqa: BLE001 - contain resolver / metric defects
            self.stats.failed += 1
            logger.error("%s: error building metrics series", self.name, exc_info=True)
        finally:
            self.last_run_millis = self.clock.time_millis()

    def close(self) -> None:
        close = getattr(self.publisher, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> RestMetricsReporter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


__all__ = [
    "MIN_REPORT_INTERVAL_MILLIS",
    "Publisher",
    "ReporterStats",
    "RestMetricsReporter",
]
