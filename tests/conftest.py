"""Pytest configuration for metrics-relay.

Responsibilities:
1. Ensure project root on sys.path.
2. Provide fakes for the registry, clock and publisher.
"""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tests._helpers import FakeClock, FakeRegistry, RecordingPublisher  # noqa: E402


@pytest.fixture()
def clock():
    # Start well past the debounce window so the first cycle always runs
    return FakeClock(1_700_000_000_000)


@pytest.fixture()
def registry():
    return FakeRegistry()


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture(autouse=True)
def _clear_relay_env(monkeypatch):
    """Keep developer shell settings out of env driven tests."""
    import os
    for name in list(os.environ):
        if name.startswith('METRICS_RELAY_'):
            monkeypatch.delenv(name, raising=False)
