"""Polling loop turning repeated detection cycles into a stream of reports."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from enum import Enum

from pollwatch.detector import Detector
from pollwatch.logging import TRACE, get_logger
from pollwatch.types import ChangeReport

log = get_logger("scheduler")


class SchedulerState(Enum):
    """Where a polling loop currently is."""

    IDLE = "idle"  # Waiting for the next tick
    SCANNING = "scanning"  # Walk + diff in progress
    STOPPED = "stopped"


class CancellationToken:
    """Cooperative stop signal for a polling loop.

    Cancelling wakes a loop that is waiting for its next tick. A scan that is
    already running always finishes first.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; return True if cancelled meanwhile."""
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


class PollingScheduler:
    """Drives walk + diff cycles of a detector at a fixed cadence.

    Cycles start ``interval`` ms apart, measured from the start of the previous
    cycle. Scans never overlap: when one overruns the interval, or the consumer
    takes longer than that to ask for the next report, the next scan starts
    right away. Empty cycles are not reported but still reset the clock.

    Example:
        scheduler = PollingScheduler(detector, interval=500)
        async for report in scheduler:
            print(report.all)
    """

    def __init__(
        self,
        detector: Detector,
        interval: float,
        token: CancellationToken | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            detector: Detector to drive. It is initialized when iteration starts.
            interval: Milliseconds between the starts of consecutive cycles.
            token: Stop signal; a private one is created if omitted.
        """
        self._detector = detector
        self._interval = max(0.0, interval)
        self._token = token if token is not None else CancellationToken()
        self._state = SchedulerState.IDLE
        self._cycles = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def cycles(self) -> int:
        """Number of completed detection cycles."""
        return self._cycles

    def __aiter__(self) -> AsyncIterator[ChangeReport]:
        return self.run()

    async def run(self) -> AsyncIterator[ChangeReport]:
        """Yield one ChangeReport per detection cycle that found changes."""
        detector = self._detector
        try:
            self._state = SchedulerState.SCANNING
            cycle_start = time.monotonic()
            stats = detector.init()
            log.info(
                "Watching %s (%d files, interval %gms)",
                ", ".join(detector.targets),
                stats.file_count,
                self._interval,
            )
            self._state = SchedulerState.IDLE

            while not self._token.cancelled:
                elapsed_ms = (time.monotonic() - cycle_start) * 1000.0
                wait_ms = max(0.0, self._interval - elapsed_ms)
                if await self._token.sleep(wait_ms / 1000.0):
                    break

                self._state = SchedulerState.SCANNING
                cycle_start = time.monotonic()
                report = await detector.detect_changes()
                self._cycles += 1
                self._state = SchedulerState.IDLE
                log.log(
                    TRACE,
                    "Cycle %d: %d files in %.1fms, %d changes",
                    self._cycles,
                    report.file_count,
                    report.elapsed,
                    len(report),
                )

                if report:
                    log.debug(
                        "Changes: %d added, %d modified, %d deleted",
                        len(report.added),
                        len(report.modified),
                        len(report.deleted),
                    )
                    yield report
        except Exception as e:
            log.error("Watch loop failed: %s", e)
            raise
        finally:
            self._state = SchedulerState.STOPPED
            log.debug("Polling stopped after %d cycles", self._cycles)
