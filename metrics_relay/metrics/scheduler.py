"""Fixed-period background driver for a reporter.

Runs `reporter.report()` from a single daemon thread every `period` seconds.
One thread means cycles never overlap, which is the calling discipline the
reporter's cadence guard expects.

Usage:
    scheduler = ReportingScheduler(reporter, period=10.0)
    scheduler.start()
    ...
    scheduler.stop()          # joins the thread, optionally runs a final cycle
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Protocol

logger = logging.getLogger(__name__)


class _Reportable(Protocol):
    def report(self) -> None: ...


class ReportingScheduler:
    def __init__(self, reporter: _Reportable, period: float, initial_delay: float | None = None,
                 thread_name: str = "metrics-relay-reporter"):
        if period <= 0:
            raise ValueError("period must be positive")
        self.reporter = reporter
        self.period = float(period)
        self.initial_delay = self.period if initial_delay is None else max(0.0, float(initial_delay))
        self.thread_name = thread_name
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """True while a reporting thread is alive, including one still draining after stop()."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                raise RuntimeError("scheduler already started or previous cycle still in progress")
            # Fresh event per thread: an old loop only ever sees its own (set) event
            stop = threading.Event()
            t = threading.Thread(target=self._loop, args=(stop,), name=self.thread_name, daemon=True)
            self._stop = stop
            self._thread = t
            t.start()
        logger.info("reporting scheduler started (period=%.3fs)", self.period)

    def _loop(self, stop: threading.Event) -> None:
        if stop.wait(self.initial_delay):
            return
        while not stop.is_set():
            start = time.monotonic()
            self.run_once()
            elapsed = time.monotonic() - start
            # Wait remaining interval
            if stop.wait(max(0.0, self.period - elapsed)):
                return

    def run_once(self) -> None:
        """Invoke one cycle; the reporter contains its own errors but a broken
        reporter object must not kill the thread either."""
        try:
            self.reporter.report()
        except Exception:  # noqa: BLE001 - keep the schedule alive
            logger.error("reporter raised out of report()", exc_info=True)

    def stop(self, timeout: float = 5.0, final_report: bool = False) -> None:
        """Signal the thread and join it.

        When the join times out the thread reference is kept, so `start()` keeps
        refusing and a requested final report is skipped until the in-flight
        cycle returns. Call `stop()` again to wait for it.
        """
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            t = self._thread
        if t is not None and t.is_alive():
            t.join(timeout=timeout)
        with self._lock:
            if t is not None and t.is_alive():
                logger.warning("reporting thread did not stop within %.1fs", timeout)
                if final_report:
                    logger.warning("final report skipped: a reporting cycle is still in progress")
                return
            if self._thread is t:
                self._thread = None
                self._stop = None
        if final_report:
            self.run_once()
        logger.info("reporting scheduler stopped")

    def __enter__(self) -> ReportingScheduler:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()


__all__ = ["ReportingScheduler"]
