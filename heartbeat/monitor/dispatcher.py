"""Probe dispatcher — one concurrent unit of work per site, per tick."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence

import structlog

from heartbeat.alerts.notifier import AlertNotifier
from heartbeat.alerts.types import AlertEvent
from heartbeat.core.config import Site, TimeoutsConfig
from heartbeat.core.types import (
    FailureKind,
    ProbeOutcome,
    Threshold,
    ThresholdBreach,
    TimeoutBudget,
)
from heartbeat.probes.base import ProtocolProbe
from heartbeat.probes.dns import DNSResolver
from heartbeat.probes.exceptions import DNSResolutionError, UnsupportedProtocolError


class ProbeDispatcher:
    """Probes every site concurrently and routes outcomes to logs and alerts.

    For each site: resolve its budget, check the name resolves through the
    upstream resolver (skipped for literal addresses, and a resolution
    failure skips the protocol probe), run the protocol probe, then alert on
    a failure and on every threshold breach.

    ``dispatch()`` returns one outcome per site, in site order, and only
    once every unit has finished. An unexpected exception in one unit is
    reported as that site's failure and never touches the others.
    """

    def __init__(
        self,
        probes: Mapping[str, ProtocolProbe],
        resolver: DNSResolver,
        notifier: AlertNotifier,
        timeouts: TimeoutsConfig,
        dns_timeout: float,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._probes = dict(probes)
        self._resolver = resolver
        self._notifier = notifier
        self._timeouts = timeouts
        self._dns_timeout = dns_timeout
        self._log = logger or structlog.get_logger(__name__)

    @property
    def protocols(self) -> list[str]:
        return sorted(self._probes)

    def close(self) -> None:
        """Release every probe's thread pool."""
        for probe in {id(p): p for p in self._probes.values()}.values():
            probe.close()

    async def dispatch(self, sites: Sequence[Site]) -> list[ProbeOutcome]:
        started = time.perf_counter()
        results = await asyncio.gather(
            *(self._probe_site(site) for site in sites),
            return_exceptions=True,
        )

        outcomes: list[ProbeOutcome] = []
        for site, result in zip(sites, results):
            if isinstance(result, ProbeOutcome):
                outcomes.append(result)
            elif isinstance(result, Exception):
                outcomes.append(self._on_fault(site, result))
            else:
                raise result

        self._log.info(
            "tick_completed",
            sites=len(outcomes),
            failures=sum(1 for o in outcomes if not o.ok),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return outcomes

    # ── Per-site unit ───────────────────────────────────────────

    async def _probe_site(self, site: Site) -> ProbeOutcome:
        log = self._log.bind(protocol=site.protocol, server=site.server)
        budget = TimeoutBudget.resolve(site, self._timeouts, self._dns_timeout)

        resolver_breach: ThresholdBreach | None = None
        if not site.is_literal_address:
            try:
                resolver_breach = await self._check_resolves(site, budget)
            except DNSResolutionError as exc:
                log.error("dns_resolution_failed", error=str(exc), resolver=self._resolver.address)
                outcome = ProbeOutcome.failure(site, exc.kind, str(exc))
                self._alert(site, outcome, log)
                return outcome

        probe = self._probes.get(site.protocol)
        if probe is None:
            err = UnsupportedProtocolError(f"unhandled protocol: {site.protocol}")
            log.error("unsupported_protocol", error=str(err))
            outcome = ProbeOutcome.failure(site, err.kind, str(err))
        else:
            outcome = await probe.run(site, budget, log)

        if resolver_breach is not None:
            outcome = outcome.with_breaches(resolver_breach)
        self._alert(site, outcome, log)
        return outcome

    async def _check_resolves(self, site: Site, budget: TimeoutBudget) -> ThresholdBreach | None:
        started = time.perf_counter()
        await self._resolver.resolve(site.server)
        elapsed = time.perf_counter() - started
        if elapsed >= budget.dns:
            return ThresholdBreach(threshold=Threshold.RESOLVER, observed=elapsed, limit=budget.dns)
        return None

    # ── Alert routing ───────────────────────────────────────────

    def _alert(self, site: Site, outcome: ProbeOutcome, log: structlog.stdlib.BoundLogger) -> None:
        for breach in outcome.breaches:
            log.warning(
                "threshold_breached",
                threshold=str(breach.threshold),
                observed_ms=round(breach.observed * 1000, 3),
                limit_ms=round(breach.limit * 1000, 3),
            )

        if outcome.ok and not outcome.breaches:
            return
        if not site.recipients:
            log.warning("alert_skipped_no_recipients", ok=outcome.ok, breaches=len(outcome.breaches))
            return

        if not outcome.ok:
            self._notifier.notify(AlertEvent.from_failure(outcome, site.recipients))
        for breach in outcome.breaches:
            self._notifier.notify(
                AlertEvent.from_breach(site.server, site.protocol, site.recipients, breach)
            )

    def _on_fault(self, site: Site, exc: Exception) -> ProbeOutcome:
        log = self._log.bind(protocol=site.protocol, server=site.server)
        log.error("probe_unit_fault", error=repr(exc), exc_info=exc)
        outcome = ProbeOutcome.failure(
            site, FailureKind.PROBE_FAULT, f"probe fault : {type(exc).__name__}: {exc}",
        )
        self._alert(site, outcome, log)
        return outcome
