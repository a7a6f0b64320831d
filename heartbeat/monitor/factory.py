"""Convenience factory for wiring the monitoring stack."""

from __future__ import annotations

import structlog

from heartbeat.alerts.notifier import AlertNotifier
from heartbeat.alerts.transport import MailTransport, SMTPTransport
from heartbeat.core.config import Settings
from heartbeat.monitor.dispatcher import ProbeDispatcher
from heartbeat.monitor.scheduler import ProbeScheduler
from heartbeat.probes.base import DEFAULT_MAX_WORKERS, ProtocolProbe
from heartbeat.probes.dns import DNSResolver
from heartbeat.probes.http import HTTPProbe
from heartbeat.probes.mysql import MySQLProbe
from heartbeat.probes.sqlserver import SQLServerProbe


def default_probes(max_workers: int = DEFAULT_MAX_WORKERS) -> dict[str, ProtocolProbe]:
    """Protocol name → probe, for every protocol this build supports.

    Each probe gets its own thread pool of *max_workers* threads.
    """
    registry: dict[str, ProtocolProbe] = {}
    for probe in (
        HTTPProbe(max_workers),
        MySQLProbe(max_workers),
        SQLServerProbe(max_workers),
    ):
        for protocol in probe.protocols:
            registry[protocol] = probe
    return registry


def probe_pool_size(site_count: int) -> int:
    # One thread per site per tick, plus one per SQL worker still draining
    # from the previous tick.
    return max(DEFAULT_MAX_WORKERS, 2 * site_count)


def create_monitor_stack(
    settings: Settings,
    logger: structlog.stdlib.BoundLogger | None = None,
    transport: MailTransport | None = None,
) -> tuple[ProbeScheduler, AlertNotifier]:
    """Build scheduler + notifier from settings.

    Returns:
        (scheduler, notifier); after the scheduler stops, close the
        notifier and ``scheduler.dispatcher``.
    """
    log = logger or structlog.get_logger("heartbeat")

    notifier = AlertNotifier(
        transport=transport or SMTPTransport(settings.sender),
        sender=settings.sender.sender,
        logger=log,
    )

    dispatcher = ProbeDispatcher(
        probes=default_probes(probe_pool_size(len(settings.sites))),
        resolver=DNSResolver(
            settings.resolver.address,
            lifetime=settings.resolver.lifetime_seconds,
        ),
        notifier=notifier,
        timeouts=settings.timeouts,
        dns_timeout=settings.resolver.timeout_seconds,
        logger=log,
    )

    scheduler = ProbeScheduler(
        dispatcher=dispatcher,
        sites=settings.sites,
        interval_secs=settings.heartbeat_seconds,
        logger=log,
    )

    return scheduler, notifier
