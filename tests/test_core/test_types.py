"""Tests for heartbeat/core/types.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from heartbeat.core.config import Site, TimeoutsConfig
from heartbeat.core.types import (
    FailureKind,
    ProbeOutcome,
    Threshold,
    ThresholdBreach,
    TimeoutBudget,
)


def _site(**kwargs: object) -> Site:
    data: dict[str, object] = {"server": "example.test", "protocol": "https"}
    data.update(kwargs)
    return Site(**data)


# ── TimeoutBudget ───────────────────────────────────────────────


class TestTimeoutBudget:
    def test_protocol_defaults(self) -> None:
        budget = TimeoutBudget.resolve(_site(protocol="mysql"), TimeoutsConfig(), 2.0)
        assert budget.total == 5.0
        assert budget.connect == 3.0
        assert budget.dns == 2.0

    def test_unknown_protocol_uses_default(self) -> None:
        budget = TimeoutBudget.resolve(_site(protocol="gopher"), TimeoutsConfig(), 2.0)
        assert budget.total == 10.0

    def test_site_values_win(self) -> None:
        site = _site(timeout_seconds=1.5, dns_timeout_seconds=0.5, connect_timeout_seconds=0.75)
        budget = TimeoutBudget.resolve(site, TimeoutsConfig(), 2.0)
        assert budget == TimeoutBudget(dns=0.5, connect=0.75, total=1.5)

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValidationError):
            TimeoutBudget(dns=0, connect=1, total=1)


# ── ThresholdBreach ─────────────────────────────────────────────


class TestThresholdBreach:
    def test_describe(self) -> None:
        breach = ThresholdBreach(threshold=Threshold.CONNECT_PHASE, observed=0.1234, limit=0.1)
        assert breach.describe() == "connect_phase time 123 ms reached budget of 100 ms"


# ── ProbeOutcome ────────────────────────────────────────────────


class TestProbeOutcome:
    def test_success(self) -> None:
        outcome = ProbeOutcome.success(_site(), phases={"total_ms": 12.0})
        assert outcome.ok is True
        assert outcome.kind is None
        assert outcome.server == "example.test"
        assert outcome.protocol == "https"
        assert outcome.phases == {"total_ms": 12.0}

    def test_failure(self) -> None:
        outcome = ProbeOutcome.failure(_site(), FailureKind.DNS_ERROR, "no such host")
        assert outcome.ok is False
        assert outcome.kind is FailureKind.DNS_ERROR
        assert outcome.message == "no such host"
        assert outcome.phases == {}
        assert outcome.breaches == ()

    def test_with_breaches_prepends(self) -> None:
        probe_breach = ThresholdBreach(threshold=Threshold.PROCESSING, observed=2.0, limit=1.0)
        resolver_breach = ThresholdBreach(threshold=Threshold.RESOLVER, observed=3.0, limit=2.0)
        outcome = ProbeOutcome.success(_site(), breaches=(probe_breach,))

        combined = outcome.with_breaches(resolver_breach)

        assert combined.breaches == (resolver_breach, probe_breach)
        assert outcome.breaches == (probe_breach,)

    def test_with_no_breaches_is_identity(self) -> None:
        outcome = ProbeOutcome.success(_site())
        assert outcome.with_breaches() is outcome

    def test_failure_kind_values(self) -> None:
        assert str(FailureKind.HTTP_STATUS_ERROR) == "HTTPStatusError"
        assert str(FailureKind.UNSUPPORTED_PROTOCOL) == "UnsupportedProtocol"
