"""Phase timer — named event timestamps for one network request."""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import StrEnum


class Phase(StrEnum):
    """Lifecycle events of a single request, in the order they occur."""

    DNS_START = "dns_start"
    DNS_DONE = "dns_done"
    CONNECT_START = "connect_start"
    CONNECT_DONE = "connect_done"
    TLS_START = "tls_start"
    TLS_DONE = "tls_done"
    GOT_CONNECTION = "got_connection"
    FIRST_BYTE = "first_byte"
    COMPLETE = "complete"


class PhaseTimer:
    """Records when each :class:`Phase` happened and derives intervals.

    Intervals whose endpoints were never recorded (e.g. TLS on plain HTTP)
    are reported as zero, and no interval is ever negative.

    Usage::

        timer = PhaseTimer()
        timer.mark(Phase.DNS_START)
        ...
        timer.durations_ms()  # {"resolve_ms": 1.2, "connect_ms": ...}
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._marks: dict[Phase, float] = {}

    def mark(self, phase: Phase) -> None:
        self._marks[phase] = self._clock()

    def skip_dns(self) -> None:
        """Connecting to a literal address: resolution takes no time."""
        now = self._clock()
        self._marks[Phase.DNS_START] = now
        self._marks[Phase.DNS_DONE] = now

    def at(self, phase: Phase) -> float | None:
        return self._marks.get(phase)

    def _span(self, start: Phase, end: Phase) -> float:
        t0 = self._marks.get(start)
        t1 = self._marks.get(end)
        if t0 is None or t1 is None:
            return 0.0
        return max(0.0, t1 - t0)

    # ── Derived intervals (seconds) ─────────────────────────────

    @property
    def resolve(self) -> float:
        return self._span(Phase.DNS_START, Phase.DNS_DONE)

    @property
    def connect(self) -> float:
        return self._span(Phase.CONNECT_START, Phase.CONNECT_DONE)

    @property
    def tls(self) -> float:
        return self._span(Phase.TLS_START, Phase.TLS_DONE)

    @property
    def ttfb(self) -> float:
        return self._span(Phase.DNS_START, Phase.FIRST_BYTE)

    @property
    def processing(self) -> float:
        """Time from having a usable connection to the first response byte."""
        return self._span(Phase.GOT_CONNECTION, Phase.FIRST_BYTE)

    @property
    def transfer(self) -> float:
        return self._span(Phase.FIRST_BYTE, Phase.COMPLETE)

    @property
    def total(self) -> float:
        return self._span(Phase.DNS_START, Phase.COMPLETE)

    def durations_ms(self) -> dict[str, float]:
        """All derived intervals in milliseconds, in lifecycle order."""
        spans = {
            "resolve_ms": self.resolve,
            "connect_ms": self.connect,
            "tls_ms": self.tls,
            "ttfb_ms": self.ttfb,
            "processing_ms": self.processing,
            "transfer_ms": self.transfer,
            "total_ms": self.total,
        }
        return {name: round(secs * 1000, 3) for name, secs in spans.items()}
