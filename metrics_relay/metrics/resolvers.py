"""Name / tag resolution for registry identifiers.

A resolver recognizes a family of raw identifiers and splits each one into a
display name plus `label:value` tags, e.g.::

    gc.gen0.collections       -> gc.collections         [generation:gen0]
    threadpool.io.active      -> threadpool.active      [pool:io]
    http_requests{code="200"} -> http_requests          [code:200]

`ResolverChain` checks resolvers in registration order, the first match wins,
and identifiers nobody claims pass through verbatim with no tags. The chain's
global tags are appended after the resolver's own tags on every result.

Resolvers must be side-effect free: they run once per metric per cycle.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..utils.exceptions import ResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricInfo:
    name: str
    tags: tuple[str, ...] = ()


@runtime_checkable
class MetricInfoResolver(Protocol):
    def can_resolve(self, identifier: str) -> bool: ...
    def resolve(self, identifier: str) -> MetricInfo: ...


class IdentityResolver:
    """Fallback: the identifier is the name, no tags."""

    def can_resolve(self, identifier: str) -> bool:
        return True

    def resolve(self, identifier: str) -> MetricInfo:
        return MetricInfo(identifier, ())


class PatternResolver:
    """Regex based resolver.

    `pattern` must fully match the identifier. `name` is a str.format template
    over the pattern's named groups. Each entry of `tag_groups` names a group
    whose value becomes a ``<group>:<value>`` tag (groups that did not
    participate in the match are skipped).
    """

    PATTERN: str = ""
    NAME: str = ""
    TAG_GROUPS: tuple[str, ...] = ()

    def __init__(self, pattern: str | None = None, name: str | None = None,
                 tag_groups: Sequence[str] | None = None):
        self._rx = re.compile(pattern if pattern is not None else self.PATTERN)
        self._name = name if name is not None else self.NAME
        self._tag_groups = tuple(tag_groups if tag_groups is not None else self.TAG_GROUPS)
        missing = [g for g in self._tag_groups if g not in self._rx.groupindex]
        if missing:
            raise ValueError(f"tag groups {missing} not present in pattern {self._rx.pattern!r}")

    def can_resolve(self, identifier: str) -> bool:
        return self._rx.fullmatch(identifier) is not None

    def resolve(self, identifier: str) -> MetricInfo:
        m = self._rx.fullmatch(identifier)
        if m is None:
            raise ResolutionError(f"{type(self).__name__} cannot resolve {identifier!r}")
        groups = m.groupdict()
        try:
            name = self._name.format(**groups)
        except (KeyError, IndexError) as e:
            raise ResolutionError(f"name template {self._name!r} failed for {identifier!r}: {e}") from e
        tags = tuple(f"{g}:{groups[g]}" for g in self._tag_groups if groups.get(g) is not None)
        return MetricInfo(name, tags)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._rx.pattern!r})"


# --- runtime presets ----------------------------------------------------------

class GarbageCollectorResolver(PatternResolver):
    PATTERN = r"gc\.(?P<generation>[^.]+)\.(?P<stat>.+)"
    NAME = "gc.{stat}"
    TAG_GROUPS = ("generation",)


class MemoryResolver(PatternResolver):
    PATTERN = r"memory\.(?P<area>heap|non-heap|total)\.(?P<stat>.+)"
    NAME = "memory.{stat}"
    TAG_GROUPS = ("area",)


class MemoryPoolResolver(PatternResolver):
    PATTERN = r"memory\.pools\.(?P<pool>[^.]+)\.(?P<stat>.+)"
    NAME = "memory.pools.{stat}"
    TAG_GROUPS = ("pool",)


class ThreadsResolver(PatternResolver):
    PATTERN = r"threads\.(?P<state>new|runnable|blocked|waiting|timed_waiting|terminated)\.count"
    NAME = "threads.count"
    TAG_GROUPS = ("state",)


class ThreadCountResolver(PatternResolver):
    PATTERN = r"threads\.(?P<kind>daemon|deadlock|peak|total)\.count"
    NAME = "threads.count"
    TAG_GROUPS = ("kind",)


class ClassesResolver(PatternResolver):
    PATTERN = r"(?P<kind>classes|modules)\.(?P<stat>.+)"
    NAME = "runtime.{stat}"
    TAG_GROUPS = ("kind",)


# --- command / executor presets ----------------------------------------------

class CommandResolver(PatternResolver):
    PATTERN = r"command\.(?P<group>[^.]+)\.(?P<command>[^.]+)\.(?P<stat>.+)"
    NAME = "command.{stat}"
    TAG_GROUPS = ("group", "command")


class ThreadPoolResolver(PatternResolver):
    PATTERN = r"threadpool\.(?P<pool>[^.]+)\.(?P<stat>.+)"
    NAME = "threadpool.{stat}"
    TAG_GROUPS = ("pool",)


# --- prometheus style identifiers ---------------------------------------------

_PROM_IDENT = re.compile(r"(?P<family>[a-zA-Z_:][a-zA-Z0-9_:]*)\{(?P<labels>.*)\}")
_PROM_LABEL = re.compile(r'\s*([a-zA-Z_][a-zA-Z0-9_]*)="((?:[^"\\]|\\.)*)"\s*(?:,|$)')
_PROM_UNESCAPE = {'\\\\': '\\', '\\"': '"', '\\n': '\n'}


def _unescape(value: str) -> str:
    return re.sub(r'\\[\\"n]', lambda m: _PROM_UNESCAPE[m.group(0)], value)


class PrometheusLabelResolver:
    """Split ``family{a="x",b="y"}`` into ``family`` and ``[a:x, b:y]``."""

    def can_resolve(self, identifier: str) -> bool:
        return _PROM_IDENT.fullmatch(identifier) is not None

    def resolve(self, identifier: str) -> MetricInfo:
        m = _PROM_IDENT.fullmatch(identifier)
        if m is None:
            raise ResolutionError(f"not a labelled identifier: {identifier!r}")
        body = m.group("labels")
        tags: list[str] = []
        pos = 0
        while pos < len(body):
            lm = _PROM_LABEL.match(body, pos)
            if lm is None or lm.end() == pos:
                raise ResolutionError(f"malformed label set in {identifier!r}")
            tags.append(f"{lm.group(1)}:{_unescape(lm.group(2))}")
            pos = lm.end()
        return MetricInfo(m.group("family"), tuple(tags))


def runtime_resolvers() -> list[MetricInfoResolver]:
    """Presets for process runtime metric families (classes, gc, memory, threads)."""
    return [
        ClassesResolver(),
        GarbageCollectorResolver(),
        MemoryResolver(),
        MemoryPoolResolver(),
        ThreadsResolver(),
        ThreadCountResolver(),
    ]


def command_resolvers() -> list[MetricInfoResolver]:
    return [CommandResolver(), ThreadPoolResolver()]


_IDENTITY = IdentityResolver()


class ResolverChain:
    """Ordered resolvers plus the reporter-wide global tags."""

    def __init__(self, resolvers: Iterable[MetricInfoResolver] | None = None,
                 global_tags: Iterable[str] | None = None):
        self._resolvers: tuple[MetricInfoResolver, ...] = tuple(resolvers or ())
        self._global_tags: tuple[str, ...] = tuple(global_tags or ())
        logger.debug("resolver chain: %s global_tags=%s", self._resolvers, self._global_tags)

    @property
    def resolvers(self) -> tuple[MetricInfoResolver, ...]:
        return self._resolvers

    @property
    def global_tags(self) -> tuple[str, ...]:
        return self._global_tags

    def find(self, identifier: str) -> MetricInfoResolver:
        for resolver in self._resolvers:
            if resolver.can_resolve(identifier):
                return resolver
        return _IDENTITY

    def resolve(self, identifier: str) -> MetricInfo:
        info = self.find(identifier).resolve(identifier)
        return MetricInfo(info.name, (*info.tags, *self._global_tags))


__all__ = [
    "MetricInfo",
    "MetricInfoResolver",
    "IdentityResolver",
    "PatternResolver",
    "GarbageCollectorResolver",
    "MemoryResolver",
    "MemoryPoolResolver",
    "ThreadsResolver",
    "ThreadCountResolver",
    "ClassesResolver",
    "CommandResolver",
    "ThreadPoolResolver",
    "PrometheusLabelResolver",
    "ResolverChain",
    "runtime_resolvers",
    "command_resolvers",
]
