"""Shared SQL probe — connect, run one metadata query, always release."""

from __future__ import annotations

import abc
import asyncio
import threading
import time
from typing import Any

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from heartbeat.core.config import Site
from heartbeat.core.types import ProbeOutcome, TimeoutBudget
from heartbeat.probes.base import ProtocolProbe
from heartbeat.probes.exceptions import SQLConnectError, SQLQueryError


class SQLProbe(ProtocolProbe):
    """Base class for database probes.

    The blocking driver runs in the probe's thread pool. The asyncio deadline ends
    the probe on time; driver timeouts set to the same budget make the
    worker finish shortly after, and the connection is closed on every
    path out of the worker, so nothing is held across ticks.
    """

    #: Read-only query that forces a real round trip.
    query: str = ""

    @abc.abstractmethod
    def url(self, site: Site) -> URL:
        """SQLAlchemy URL (driver, credentials, host, port) for *site*."""

    @abc.abstractmethod
    def connect_args(self, budget: TimeoutBudget) -> dict[str, Any]:
        """Driver keyword arguments carrying the timeout budget."""

    async def check(
        self,
        site: Site,
        budget: TimeoutBudget,
        log: structlog.stdlib.BoundLogger,
    ) -> ProbeOutcome:
        connected = threading.Event()
        try:
            async with asyncio.timeout(budget.total):
                elapsed = await self.run_blocking(
                    self._run_query, site, budget, connected,
                )
        except TimeoutError as exc:
            action = "query database" if connected.is_set() else "connect to database"
            error = f"action: {action}, err: deadline of {budget.total:g}s exceeded"
            log.error("sql_probe_error", error=error)
            if connected.is_set():
                raise SQLQueryError(error) from exc
            raise SQLConnectError(error) from exc
        except (SQLConnectError, SQLQueryError) as exc:
            log.error("sql_probe_error", error=str(exc))
            raise

        log.info("sql_probe_ok", total_ms=round(elapsed * 1000, 3))
        return ProbeOutcome.success(site)

    def _run_query(
        self,
        site: Site,
        budget: TimeoutBudget,
        connected: threading.Event,
    ) -> float:
        """Blocking part of the probe. Returns the query time in seconds."""
        try:
            engine = create_engine(
                self.url(site),
                poolclass=NullPool,
                connect_args=self.connect_args(budget),
            )
        except SQLAlchemyError as exc:
            raise SQLConnectError(f"action: connect to database, err: {exc}") from exc

        try:
            try:
                conn = engine.connect()
            except SQLAlchemyError as exc:
                raise SQLConnectError(
                    f"action: connect to database, err: {_root_cause(exc)}"
                ) from exc

            with conn:
                connected.set()
                started = time.perf_counter()
                try:
                    conn.execute(text(self.query)).first()
                except SQLAlchemyError as exc:
                    raise SQLQueryError(
                        f"action: query database, err: {_root_cause(exc)}"
                    ) from exc
                return time.perf_counter() - started
        finally:
            engine.dispose()


def _root_cause(exc: SQLAlchemyError) -> str:
    # SQLAlchemy wraps DBAPI errors; the driver's message is what operators need.
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
