"""Time units used for rate and duration conversion.

Meter and timer rates arrive as events per second; they are reported per
`rate_unit` by multiplying with the number of seconds in that unit. Timer
durations arrive in nanoseconds; they are reported in `duration_unit` by
dividing by the number of nanoseconds in that unit.
"""
from __future__ import annotations

from enum import Enum


class TimeUnit(str, Enum):
    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def nanos(self) -> int:
        return _NANOS[self]

    @property
    def seconds(self) -> float:
        return _NANOS[self] / 1_000_000_000

    @classmethod
    def parse(cls, value: str | TimeUnit) -> TimeUnit:
        """Accept a member, its value or its name (case-insensitive)."""
        if isinstance(value, TimeUnit):
            return value
        key = value.strip().lower()
        for unit in cls:
            if key in (unit.value, unit.name.lower()):
                return unit
        raise ValueError(f"unknown time unit: {value!r}")


_NANOS: dict[TimeUnit, int] = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 3_600 * 1_000_000_000,
    TimeUnit.DAYS: 86_400 * 1_000_000_000,
}


__all__ = ["TimeUnit"]
