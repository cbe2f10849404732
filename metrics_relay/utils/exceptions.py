"""metrics-relay exception hierarchy.

A small tree for categorizing failures. Configuration problems are raised to
the caller at build time; resolution and publish failures are raised inside a
reporting cycle and contained at the cycle boundary.
"""
from __future__ import annotations


class MetricsRelayError(Exception):
    """Base class for all metrics-relay exceptions."""


class ConfigError(MetricsRelayError):
    """Invalid reporter configuration (malformed URL, bad timeouts, unknown units)."""


class PublishError(MetricsRelayError):
    """Collector endpoint rejected the batch or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ResolutionError(MetricsRelayError):
    """A resolver could not produce a name for an identifier it claimed."""


__all__ = [
    "MetricsRelayError",
    "ConfigError",
    "PublishError",
    "ResolutionError",
]
