"""Tests for the monitor factory — probe registry and stack wiring."""

from __future__ import annotations

from email.message import EmailMessage

from heartbeat.alerts.notifier import AlertNotifier
from heartbeat.alerts.transport import MailTransport, SMTPTransport
from heartbeat.core.config import Settings
from heartbeat.monitor.factory import create_monitor_stack, default_probes, probe_pool_size
from heartbeat.probes.base import DEFAULT_MAX_WORKERS
from heartbeat.monitor.scheduler import ProbeScheduler, SchedulerState
from heartbeat.probes.http import HTTPProbe
from heartbeat.probes.mysql import MySQLProbe
from heartbeat.probes.sqlserver import SQLServerProbe


# ── Helpers ─────────────────────────────────────────────────────


class NullTransport(MailTransport):
    def send(self, message: EmailMessage) -> None:
        pass


def _settings(**kw: object) -> Settings:
    defaults: dict[str, object] = {
        "sender": {"server": "smtp.example.test", "username": "alerts@example.test"},
        "sites": [
            {"server": "www.example.test", "protocol": "https"},
            {"server": "db.example.test", "protocol": "mysql"},
        ],
    }
    defaults.update(kw)
    return Settings(**defaults)  # type: ignore[arg-type]


# ── Probe registry ──────────────────────────────────────────────


class TestDefaultProbes:
    def test_every_protocol_registered(self) -> None:
        probes = default_probes()
        assert sorted(probes) == ["http", "https", "mysql", "sqlserver"]

    def test_probe_types(self) -> None:
        probes = default_probes()
        assert isinstance(probes["http"], HTTPProbe)
        assert probes["http"] is probes["https"]
        assert isinstance(probes["mysql"], MySQLProbe)
        assert isinstance(probes["sqlserver"], SQLServerProbe)

    def test_pool_size_passed_to_every_probe(self) -> None:
        probes = default_probes(max_workers=3)
        assert {p.max_workers for p in probes.values()} == {3}

    def test_pool_size_grows_with_sites(self) -> None:
        assert probe_pool_size(0) == DEFAULT_MAX_WORKERS
        assert probe_pool_size(50) == 100


# ── Stack wiring ────────────────────────────────────────────────


class TestFactoryWiring:
    def test_default_transport_is_smtp(self) -> None:
        scheduler, notifier = create_monitor_stack(_settings())
        assert isinstance(scheduler, ProbeScheduler)
        assert isinstance(notifier, AlertNotifier)
        assert isinstance(notifier._transport, SMTPTransport)
        assert scheduler.state is SchedulerState.IDLE

    def test_custom_transport(self) -> None:
        transport = NullTransport()
        _, notifier = create_monitor_stack(_settings(), transport=transport)
        assert notifier._transport is transport
        assert notifier._sender == "alerts@example.test"

    def test_settings_flow_through(self) -> None:
        settings = _settings(
            heartbeat_seconds=15,
            resolver={"address": "9.9.9.9:5353", "timeout_seconds": 0.5},
        )
        scheduler, _ = create_monitor_stack(settings, transport=NullTransport())

        dispatcher = scheduler.dispatcher
        assert scheduler._interval == 15
        assert len(scheduler._sites) == 2
        assert dispatcher._resolver.address == "9.9.9.9:5353"
        assert dispatcher._dns_timeout == 0.5
        assert dispatcher.protocols == ["http", "https", "mysql", "sqlserver"]

    def test_probe_pools_sized_for_sites(self) -> None:
        sites = [{"server": f"s{i}.example.test", "protocol": "https"} for i in range(20)]
        scheduler, _ = create_monitor_stack(_settings(sites=sites), transport=NullTransport())
        probe = scheduler.dispatcher._probes["https"]
        assert probe.max_workers == 40
