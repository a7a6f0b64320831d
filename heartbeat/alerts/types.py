"""Domain types for the alerting subsystem."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from heartbeat.core.types import ProbeOutcome, ThresholdBreach


class AlertKind(StrEnum):
    """Whether the site is down or only slow."""

    DOWN = "down"
    SLOW = "slow"


class AlertEvent(BaseModel):
    """One alert, delivered once and then discarded."""

    model_config = ConfigDict(frozen=True)

    server: str
    protocol: str
    recipients: tuple[str, ...] = Field(min_length=1)
    kind: AlertKind
    reason: str
    error: str
    timestamp: float = Field(default_factory=time.time)

    @classmethod
    def from_failure(cls, outcome: ProbeOutcome, recipients: tuple[str, ...]) -> AlertEvent:
        return cls(
            server=outcome.server,
            protocol=outcome.protocol,
            recipients=recipients,
            kind=AlertKind.DOWN,
            reason=str(outcome.kind),
            error=outcome.message,
        )

    @classmethod
    def from_breach(
        cls,
        server: str,
        protocol: str,
        recipients: tuple[str, ...],
        breach: ThresholdBreach,
    ) -> AlertEvent:
        return cls(
            server=server,
            protocol=protocol,
            recipients=recipients,
            kind=AlertKind.SLOW,
            reason=f"slow_{breach.threshold}",
            error=breach.describe(),
        )
