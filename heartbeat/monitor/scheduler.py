"""Probe scheduler — runs the dispatcher on a fixed interval until stopped."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from enum import StrEnum

import structlog

from heartbeat.core.config import Site
from heartbeat.monitor.dispatcher import ProbeDispatcher


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ProbeScheduler:
    """Background task that dispatches one tick per interval.

    The first tick runs as soon as the scheduler starts. Ticks are aligned
    to a fixed grid; ticks that fall due while a dispatch is still running
    are dropped, never queued, so dispatches never overlap.

    Stopping never cancels a dispatch: the in-flight tick finishes (each
    probe has its own deadline) and then the loop exits.

    Usage::

        scheduler = ProbeScheduler(dispatcher, settings.sites, interval_secs=60)
        await scheduler.start()
        # ...
        await scheduler.stop()
    """

    def __init__(
        self,
        dispatcher: ProbeDispatcher,
        sites: Sequence[Site],
        interval_secs: float,
        logger: structlog.stdlib.BoundLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._dispatcher = dispatcher
        self._sites = tuple(sites)
        self._interval = interval_secs
        self._log = logger or structlog.get_logger(__name__)
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._stop_requested = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._ticks = 0
        self._dropped = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def dispatcher(self) -> ProbeDispatcher:
        return self._dispatcher

    @property
    def ticks(self) -> int:
        """Number of dispatches started so far."""
        return self._ticks

    @property
    def dropped_ticks(self) -> int:
        return self._dropped

    async def start(self) -> None:
        if self._state is not SchedulerState.IDLE:
            return
        self._state = SchedulerState.RUNNING
        self._task = asyncio.create_task(self._loop())
        self._log.info(
            "scheduler_started",
            sites=len(self._sites),
            interval_secs=self._interval,
        )

    def request_stop(self) -> None:
        """Ask the loop to exit after the current dispatch. Safe from signal handlers."""
        if self._state is SchedulerState.IDLE:
            self._state = SchedulerState.STOPPED
            return
        if self._state is SchedulerState.RUNNING:
            self._state = SchedulerState.STOPPING
            self._log.info("scheduler_stopping")
        self._stop_requested.set()

    async def wait(self) -> None:
        """Block until the scheduler has stopped."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        self.request_stop()
        await self.wait()

    # ── Internal loop ───────────────────────────────────────────

    async def _loop(self) -> None:
        next_due = self._clock()
        try:
            while not self._stop_requested.is_set():
                self._ticks += 1
                try:
                    await self._dispatcher.dispatch(self._sites)
                except Exception:
                    self._log.exception("dispatch_error", tick=self._ticks)

                next_due = self._advance(next_due)
                delay = max(0.0, next_due - self._clock())
                try:
                    await asyncio.wait_for(self._stop_requested.wait(), timeout=delay)
                except TimeoutError:
                    pass
        finally:
            self._state = SchedulerState.STOPPED
            self._log.info("scheduler_stopped", ticks=self._ticks, dropped_ticks=self._dropped)

    def _advance(self, last_due: float) -> float:
        """Next grid point that is not already in the past."""
        next_due = last_due + self._interval
        now = self._clock()
        missed = 0
        while next_due < now:
            next_due += self._interval
            missed += 1
        if missed:
            self._dropped += missed
            self._log.warning("ticks_dropped", count=missed, tick=self._ticks)
        return next_due
