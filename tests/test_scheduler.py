from __future__ import annotations

import threading

import pytest

from metrics_relay.metrics.scheduler import ReportingScheduler


class CountingReporter:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail
        self.event = threading.Event()

    def report(self):
        self.calls += 1
        self.event.set()
        if self.fail:
            raise RuntimeError('boom')


def test_period_must_be_positive():
    with pytest.raises(ValueError):
        ReportingScheduler(CountingReporter(), 0)


def test_runs_cycles_on_background_thread():
    rep = CountingReporter()
    sched = ReportingScheduler(rep, period=0.01, initial_delay=0)
    sched.start()
    try:
        assert rep.event.wait(2.0)
        assert sched.running
        with pytest.raises(RuntimeError):
            sched.start()
    finally:
        sched.stop()
    assert not sched.running


def test_run_once_contains_reporter_errors(caplog):
    rep = CountingReporter(fail=True)
    ReportingScheduler(rep, period=1).run_once()
    assert rep.calls == 1
    assert 'reporter raised' in caplog.text


def test_stop_with_final_report():
    rep = CountingReporter()
    sched = ReportingScheduler(rep, period=60)
    sched.start()
    sched.stop(final_report=True)
    assert rep.calls == 1


def test_context_manager_stops_thread():
    rep = CountingReporter()
    with ReportingScheduler(rep, period=60) as sched:
        assert sched.running
    assert not sched.running
    assert rep.calls == 0


class BlockingReporter:
    """Parks inside report() until released; tracks overlapping calls."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.calls = 0

    def report(self):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        try:
            self.release.wait(5.0)
        finally:
            with self._lock:
                self.active -= 1


def test_restart_refused_while_cycle_in_flight():
    rep = BlockingReporter()
    sched = ReportingScheduler(rep, period=0.01, initial_delay=0)
    sched.start()
    try:
        assert rep.entered.wait(2.0)
        sched.stop(timeout=0.05)
        # the blocked thread is still tracked
        assert sched.running
        with pytest.raises(RuntimeError):
            sched.start()
        # final report is skipped rather than run beside the stuck cycle
        sched.stop(timeout=0.05, final_report=True)
        assert rep.calls == 1
    finally:
        rep.release.set()
        sched.stop(timeout=2.0)
    assert not sched.running
    assert rep.max_active == 1
    assert rep.calls == 1


def test_restart_after_drained_stop_runs_single_thread():
    rep = BlockingReporter()
    rep.release.set()
    sched = ReportingScheduler(rep, period=0.01, initial_delay=0)
    sched.start()
    assert rep.entered.wait(2.0)
    sched.stop(timeout=2.0)
    calls = rep.calls
    sched.start()
    try:
        rep.entered.clear()
        assert rep.entered.wait(2.0)
    finally:
        sched.stop(timeout=2.0)
    assert rep.calls > calls
    assert rep.max_active == 1
