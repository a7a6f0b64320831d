"""HTTP(S) probe with per-phase request timing."""

from __future__ import annotations

import asyncio
import socket
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from heartbeat.core.config import HTTPMethod, Site
from heartbeat.core.types import (
    ProbeOutcome,
    Threshold,
    ThresholdBreach,
    TimeoutBudget,
)
from heartbeat.probes.base import ProtocolProbe
from heartbeat.probes.exceptions import HTTPStatusError, HTTPTransportError
from heartbeat.probes.timing import Phase, PhaseTimer

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# httpcore trace events → timer phases. DNS is timed by the probe itself.
_TRACE_PHASES: dict[str, Phase] = {
    "connection.connect_tcp.started": Phase.CONNECT_START,
    "connection.connect_tcp.complete": Phase.CONNECT_DONE,
    "connection.start_tls.started": Phase.TLS_START,
    "connection.start_tls.complete": Phase.TLS_DONE,
    "http11.send_request_headers.started": Phase.GOT_CONNECTION,
    "http11.receive_response_headers.complete": Phase.FIRST_BYTE,
}

TraceFn = Callable[[str, dict[str, Any]], Awaitable[None]]


def build_url(scheme: str, host: str, port: int | None, path: str) -> str:
    """``scheme://host[:port][/path]``; IPv6 hosts are bracketed."""
    netloc = f"[{host}]" if ":" in host else host
    if port:
        netloc = f"{netloc}:{port}"
    url = f"{scheme}://{netloc}"
    if path:
        url = f"{url}/{path.lstrip('/')}"
    return url


def status_accepted(status_code: int, accept_403: bool) -> bool:
    if status_code == 200:
        return True
    return status_code == 403 and accept_403


def _tracer(timer: PhaseTimer) -> TraceFn:
    async def trace(event_name: str, info: dict[str, Any]) -> None:
        phase = _TRACE_PHASES.get(event_name)
        if phase is not None:
            timer.mark(phase)

    return trace


def _resolve_addresses(host: str, port: int) -> list[str]:
    """Addresses for *host* in resolver order, without duplicates."""
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    addresses = list(dict.fromkeys(str(info[4][0]) for info in infos))
    if not addresses:
        raise socket.gaierror(f"no addresses for {host}")
    return addresses


def _describe(exc: BaseException, budget: TimeoutBudget) -> str:
    if isinstance(exc, TimeoutError):
        return f"deadline of {budget.total:g}s exceeded"
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class HTTPProbe(ProtocolProbe):
    """Issues one HEAD/GET/POST request and times each phase of it.

    The whole attempt, name resolution included, runs under a single
    deadline of ``budget.total`` seconds. Names are resolved with the system
    resolver on the probe's own thread pool, then each address is tried in
    resolver order until one accepts a connection, so the connect phase
    measures only TCP setup. The Host header and TLS SNI still carry the
    configured name.
    """

    protocols = ("http", "https")

    async def check(
        self,
        site: Site,
        budget: TimeoutBudget,
        log: structlog.stdlib.BoundLogger,
    ) -> ProbeOutcome:
        timer = PhaseTimer()
        try:
            async with asyncio.timeout(budget.total):
                response = await self._request(site, timer, log)
        except (TimeoutError, httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            error = _describe(exc, budget)
            log.error("http_probe_transport_error", error=error)
            raise HTTPTransportError(f"HTTP error : {error}") from exc

        phases = timer.durations_ms()
        breaches = self._breaches(timer, budget)

        if status_accepted(response.status_code, site.http.accept_403):
            log.info("http_probe_ok", status=response.status_code, **phases)
            return ProbeOutcome.success(site, phases=phases, breaches=breaches)

        err = HTTPStatusError(response.status_code, response.reason_phrase)
        log.error(
            "http_probe_status_error",
            status=err.status_code,
            error=err.reason,
            **phases,
        )
        return ProbeOutcome.failure(
            site, err.kind, str(err), phases=phases, breaches=breaches,
        )

    async def _request(
        self,
        site: Site,
        timer: PhaseTimer,
        log: structlog.stdlib.BoundLogger,
    ) -> httpx.Response:
        cfg = site.http
        scheme = site.protocol
        headers: dict[str, str] = {}
        extensions: dict[str, Any] = {"trace": _tracer(timer)}

        if site.is_literal_address:
            timer.skip_dns()
            addresses = [site.server]
        else:
            timer.mark(Phase.DNS_START)
            addresses = await self.run_blocking(
                _resolve_addresses, site.server, cfg.port or _DEFAULT_PORTS.get(scheme, 80),
            )
            timer.mark(Phase.DNS_DONE)
            headers["Host"] = f"{site.server}:{cfg.port}" if cfg.port else site.server
            extensions["sni_hostname"] = site.server

        content = cfg.content if cfg.method is HTTPMethod.POST else None

        async with httpx.AsyncClient(
            verify=cfg.verify_cert,
            trust_env=False,
            follow_redirects=False,
            timeout=None,
        ) as client:
            for attempt, address in enumerate(addresses, start=1):
                request = client.build_request(
                    cfg.method.value,
                    build_url(scheme, address, cfg.port, cfg.url),
                    headers=headers,
                    content=content,
                    extensions=extensions,
                )
                try:
                    response = await client.send(request)
                except httpx.ConnectError as exc:
                    # Unreachable address family or host: fall through to the next address.
                    if attempt == len(addresses):
                        raise
                    log.debug("http_probe_address_failed", address=address, error=str(exc))
                    continue
                timer.mark(Phase.COMPLETE)
                return response
        raise httpx.ConnectError(f"no usable address for {site.server}")

    @staticmethod
    def _breaches(timer: PhaseTimer, budget: TimeoutBudget) -> tuple[ThresholdBreach, ...]:
        checks = (
            (Threshold.DNS_PHASE, timer.resolve, budget.dns),
            (Threshold.CONNECT_PHASE, timer.connect + timer.tls, budget.connect),
            # Never fires while the request runs under asyncio.timeout(budget.total);
            # reported alongside the other thresholds if that deadline is lifted.
            (Threshold.PROCESSING, timer.processing, budget.total),
        )
        return tuple(
            ThresholdBreach(threshold=threshold, observed=observed, limit=limit)
            for threshold, observed, limit in checks
            if observed >= limit
        )
