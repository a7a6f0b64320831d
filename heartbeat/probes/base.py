"""Abstract protocol probe — one liveness check against one site."""

from __future__ import annotations

import abc
import asyncio
import functools
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import structlog

from heartbeat.core.config import Site
from heartbeat.core.types import ProbeOutcome, TimeoutBudget
from heartbeat.probes.exceptions import ProbeError

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 8


class ProtocolProbe(abc.ABC):
    """Base class for protocol probes.

    Subclasses implement ``check()``; the base class turns any
    :class:`ProbeError` it raises into a failure outcome, so ``run()`` always
    returns a :class:`ProbeOutcome`. Probes hold no per-site state and one
    instance serves every site of its protocol concurrently.

    Blocking calls (name lookups, database drivers) go through
    ``run_blocking()`` on the probe's own thread pool, never the event
    loop's default executor, which alert delivery and other libraries
    may be holding.
    """

    #: Protocol names this probe is registered under.
    protocols: tuple[str, ...] = ()

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    @property
    def max_workers(self) -> int:
        return self._max_workers

    async def run(
        self,
        site: Site,
        budget: TimeoutBudget,
        log: structlog.stdlib.BoundLogger,
    ) -> ProbeOutcome:
        try:
            return await self.check(site, budget, log)
        except ProbeError as exc:
            return ProbeOutcome.failure(site, exc.kind, str(exc))

    @abc.abstractmethod
    async def check(
        self,
        site: Site,
        budget: TimeoutBudget,
        log: structlog.stdlib.BoundLogger,
    ) -> ProbeOutcome:
        """Probe *site* once, finishing within ``budget.total`` seconds."""

    async def run_blocking(self, fn: Callable[..., T], *args: Any) -> T:
        """Run *fn* in this probe's thread pool and await its result."""
        if self._executor is None:
            name = self.protocols[0] if self.protocols else "probe"
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix=f"heartbeat-{name}",
            )
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def close(self) -> None:
        """Release the thread pool. Threads still running finish on their own."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
