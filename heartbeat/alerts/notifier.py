"""Alert notifier — best-effort, non-blocking email delivery."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import structlog

from heartbeat.alerts.formatters import format_alert_email
from heartbeat.alerts.transport import MailTransport
from heartbeat.alerts.types import AlertEvent

DEFAULT_MAX_WORKERS = 4


class AlertNotifier:
    """Sends one email per AlertEvent without holding up the caller.

    - ``notify()`` schedules delivery and returns immediately.
    - The blocking transport runs on the notifier's own thread pool, so a
      hung mail relay never takes threads that probes need.
    - Delivery failures are logged and dropped: no retry, no dedupe.
    - ``close()`` waits for in-flight deliveries, then releases the pool.
    """

    def __init__(
        self,
        transport: MailTransport,
        sender: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._transport = transport
        self._sender = sender
        self._log = logger or structlog.get_logger(__name__)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="heartbeat-alert",
        )
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def notify(self, event: AlertEvent) -> asyncio.Task[bool]:
        """Start delivering *event*. Must be called from the event loop."""
        task = asyncio.create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, event: AlertEvent) -> bool:
        log = self._log.bind(
            server=event.server,
            protocol=event.protocol,
            reason=event.reason,
            recipients=list(event.recipients),
        )
        loop = asyncio.get_running_loop()
        try:
            message = format_alert_email(event, sender=self._sender)
            await loop.run_in_executor(self._executor, self._transport.send, message)
        except Exception:
            log.exception("alert_send_failed")
            return False
        log.info("alert_sent")
        return True

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        self._executor.shutdown(wait=False)
