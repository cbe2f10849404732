"""Flat time-series observations and the per-cycle batch.

Wire shape (one POST per cycle):

    {"series": [
        {"metric": "requests", "type": "counter", "value": 42,
         "epoch": 1700000000, "host": "h1", "tags": ["env:prod"]},
        ...
    ]}

Fields whose value is None (typically `host`) are omitted from each entry.
"""
from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class Observation:
    name: str
    value: Any
    timestamp: int
    host: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    type: ClassVar[str] = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("observation name must be non-empty")
        # Accept any iterable of tags but store immutably
        object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self) -> dict[str, Any]:
        entry = {
            "metric": self.name,
            "type": self.type,
            "value": self.value,
            "epoch": self.timestamp,
            "host": self.host,
            "tags": list(self.tags),
        }
        return {k: v for k, v in entry.items() if v is not None}


@dataclass(frozen=True)
class CounterObservation(Observation):
    type: ClassVar[str] = "counter"

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "value", int(self.value))


@dataclass(frozen=True)
class GaugeObservation(Observation):
    type: ClassVar[str] = "gauge"


class Series:
    """Ordered batch of observations produced within one reporting cycle."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Observation] | None = None) -> None:
        self._items: list[Observation] = list(items or ())

    def add(self, observation: Observation) -> None:
        self._items.append(observation)

    def extend(self, observations: Iterable[Observation]) -> None:
        self._items.extend(observations)

    def is_empty(self) -> bool:
        return not self._items

    @property
    def observations(self) -> list[Observation]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"Series({self._items!r})"

    def to_payload(self) -> dict[str, Any]:
        return {"series": [obs.to_dict() for obs in self._items]}

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), separators=(",", ":"))


__all__ = ["Observation", "CounterObservation", "GaugeObservation", "Series"]
