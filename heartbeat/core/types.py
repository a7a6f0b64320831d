"""Domain types for probing: budgets, outcomes, threshold breaches."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from heartbeat.core.config import Site, TimeoutsConfig


class FailureKind(StrEnum):
    """Why a probe failed."""

    DNS_ERROR = "DNSError"
    HTTP_TRANSPORT_ERROR = "HTTPTransportError"
    HTTP_STATUS_ERROR = "HTTPStatusError"
    CONNECT_ERROR = "ConnectError"
    QUERY_ERROR = "QueryError"
    UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
    PROBE_FAULT = "ProbeFault"  # unexpected exception inside a probe unit


class Threshold(StrEnum):
    """Secondary timing limits. A breach alerts but never fails the probe."""

    RESOLVER = "resolver"  # upstream DNSResolver call, timed by the dispatcher
    DNS_PHASE = "dns_phase"
    CONNECT_PHASE = "connect_phase"
    PROCESSING = "processing"


class TimeoutBudget(BaseModel):
    """Timeout budgets (seconds) for one site, fixed for the whole tick."""

    model_config = ConfigDict(frozen=True)

    dns: float = Field(gt=0)
    connect: float = Field(gt=0)
    total: float = Field(gt=0)

    @classmethod
    def resolve(
        cls,
        site: Site,
        timeouts: TimeoutsConfig,
        dns_default: float,
    ) -> TimeoutBudget:
        """Site-specified values win; otherwise fall back to protocol defaults."""
        total = site.timeout_seconds or timeouts.protocols.get(
            site.protocol, timeouts.default_seconds
        )
        return cls(
            dns=site.dns_timeout_seconds or dns_default,
            connect=site.connect_timeout_seconds or timeouts.connect_seconds,
            total=total,
        )


class ThresholdBreach(BaseModel):
    """A secondary threshold that was met or exceeded."""

    model_config = ConfigDict(frozen=True)

    threshold: Threshold
    observed: float
    limit: float

    def describe(self) -> str:
        return (
            f"{self.threshold} time {self.observed * 1000:.0f} ms "
            f"reached budget of {self.limit * 1000:.0f} ms"
        )


class ProbeOutcome(BaseModel):
    """Result of probing one site once.

    ``phases`` maps phase name to milliseconds, in lifecycle order. It is
    filled for HTTP probes and empty for SQL probes.
    """

    model_config = ConfigDict(frozen=True)

    server: str
    protocol: str
    ok: bool
    kind: FailureKind | None = None
    message: str = ""
    phases: dict[str, float] = Field(default_factory=dict)
    breaches: tuple[ThresholdBreach, ...] = ()

    @classmethod
    def success(
        cls,
        site: Site,
        phases: dict[str, float] | None = None,
        breaches: tuple[ThresholdBreach, ...] = (),
    ) -> ProbeOutcome:
        return cls(
            server=site.server,
            protocol=site.protocol,
            ok=True,
            phases=phases or {},
            breaches=breaches,
        )

    @classmethod
    def failure(
        cls,
        site: Site,
        kind: FailureKind,
        message: str,
        phases: dict[str, float] | None = None,
        breaches: tuple[ThresholdBreach, ...] = (),
    ) -> ProbeOutcome:
        return cls(
            server=site.server,
            protocol=site.protocol,
            ok=False,
            kind=kind,
            message=message,
            phases=phases or {},
            breaches=breaches,
        )

    def with_breaches(self, *breaches: ThresholdBreach) -> ProbeOutcome:
        """Copy of this outcome with extra breaches prepended."""
        if not breaches:
            return self
        return self.model_copy(update={"breaches": (*breaches, *self.breaches)})
