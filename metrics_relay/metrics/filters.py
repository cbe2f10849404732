"""Metric filter predicates.

A filter is any callable ``(identifier, metric) -> bool``; entries for which
it returns False are dropped before flattening. Helpers here cover the usual
allow/deny-by-name cases and compose with `all_of` / `any_of`.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

MetricFilter = Callable[[str, Any], bool]


def accept_all(identifier: str, metric: Any) -> bool:  # noqa: ARG001 - filter signature
    return True


ALL: MetricFilter = accept_all


def prefix_filter(*prefixes: str) -> MetricFilter:
    """Accept identifiers starting with any of `prefixes`."""
    def _match(identifier: str, metric: Any) -> bool:
        return identifier.startswith(prefixes)
    return _match


def regex_filter(pattern: str | re.Pattern[str]) -> MetricFilter:
    """Accept identifiers matched (re.search) by `pattern`."""
    rx = re.compile(pattern) if isinstance(pattern, str) else pattern
    def _match(identifier: str, metric: Any) -> bool:
        return rx.search(identifier) is not None
    return _match


def exclude(inner: MetricFilter) -> MetricFilter:
    def _match(identifier: str, metric: Any) -> bool:
        return not inner(identifier, metric)
    return _match


def all_of(filters: Iterable[MetricFilter]) -> MetricFilter:
    items = list(filters)
    def _match(identifier: str, metric: Any) -> bool:
        return all(f(identifier, metric) for f in items)
    return _match


def any_of(filters: Iterable[MetricFilter]) -> MetricFilter:
    items = list(filters)
    def _match(identifier: str, metric: Any) -> bool:
        return any(f(identifier, metric) for f in items)
    return _match


__all__ = [
    "MetricFilter",
    "ALL",
    "accept_all",
    "prefix_filter",
    "regex_filter",
    "exclude",
    "all_of",
    "any_of",
]
