"""Clock abstractions.

The reporter reads wall time in epoch milliseconds through a `Clock` so the
cadence guard and the shared cycle timestamp can be driven from tests.
"""
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def time_millis(self) -> int: ...  # noqa: D401


class SystemClock:
    """Wall clock backed by time.time()."""

    def time_millis(self) -> int:
        return int(time.time() * 1000)


DEFAULT_CLOCK = SystemClock()

def to_epoch_seconds(millis: int) -> int:
    """Whole seconds since epoch (truncating)."""
    return millis // 1000

__all__ = ["Clock", "SystemClock", "DEFAULT_CLOCK", "to_epoch_seconds"]
