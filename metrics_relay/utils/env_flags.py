"""Environment flag helpers.

Interprets environment variables as boolean feature flags using the canonical
truthy set {"1","true","yes","on"} (case-insensitive), plus small typed
readers used by the configuration loader.

Usage examples:
    from metrics_relay.utils.env_flags import is_truthy_env
    if is_truthy_env('METRICS_RELAY_RUNTIME_RESOLVERS'):
        ...
"""
from __future__ import annotations

import os
from collections.abc import Iterable

TRUTHY_SET: set[str] = {"1","true","yes","on"}

def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET

def is_truthy_env(name: str, default: str | None = None) -> bool:
    return is_truthy(os.getenv(name, default or ''))

def any_truthy_env(names: Iterable[str]) -> bool:
    return any(is_truthy_env(n) for n in names)

def env_str(name: str) -> str | None:
    """Return the stripped value of `name`, or None when unset or blank."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()

def env_list(name: str) -> list[str]:
    """Split a comma separated variable into non-blank items."""
    raw = os.getenv(name, '')
    return [part.strip() for part in raw.split(',') if part.strip()]

__all__ = [
    'TRUTHY_SET',
    'is_truthy',
    'is_truthy_env',
    'any_truthy_env',
    'env_str',
    'env_list',
]
