"""Tests for DNSResolver and address parsing."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import dns.resolver
import pytest

from heartbeat.core.types import FailureKind
from heartbeat.probes.dns import DNSResolver, split_address
from heartbeat.probes.exceptions import DNSResolutionError


def _answers(*addresses: str) -> MagicMock:
    answers = MagicMock()
    answers.addresses.return_value = iter(addresses)
    return answers


# ── split_address ───────────────────────────────────────────────


class TestSplitAddress:
    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("1.1.1.1:53", ("1.1.1.1", 53)),
            ("9.9.9.9:5353", ("9.9.9.9", 5353)),
            ("8.8.8.8", ("8.8.8.8", 53)),
            (" 8.8.4.4:53 ", ("8.8.4.4", 53)),
            ("[2001:db8::1]:5300", ("2001:db8::1", 5300)),
            ("[2001:db8::1]", ("2001:db8::1", 53)),
            ("2001:db8::1", ("2001:db8::1", 53)),
        ],
    )
    def test_split(self, address: str, expected: tuple[str, int]) -> None:
        assert split_address(address) == expected


# ── Construction ────────────────────────────────────────────────


class TestConstruction:
    def test_nameserver_configured(self) -> None:
        resolver = DNSResolver("9.9.9.9:5353")
        ns = resolver._resolver.nameservers[0]
        assert ns.address == "9.9.9.9"
        assert ns.port == 5353
        assert resolver.address == "9.9.9.9:5353"

    def test_hostname_rejected(self) -> None:
        with pytest.raises(ValueError):
            DNSResolver("dns.example.test:53")


# ── resolve() ───────────────────────────────────────────────────


class TestResolve:
    async def test_returns_addresses(self) -> None:
        resolver = DNSResolver("1.1.1.1:53")
        with patch.object(
            resolver._resolver, "resolve_name", new_callable=AsyncMock,
        ) as mock_resolve:
            mock_resolve.return_value = _answers("192.0.2.1", "2001:db8::1")
            result = await resolver.resolve("example.test")

        assert result == ["192.0.2.1", "2001:db8::1"]
        mock_resolve.assert_awaited_once()
        args, kwargs = mock_resolve.call_args
        assert args == ("example.test",)
        assert kwargs["tcp"] is True

    async def test_nxdomain(self) -> None:
        resolver = DNSResolver("1.1.1.1:53")
        with patch.object(
            resolver._resolver, "resolve_name", new_callable=AsyncMock,
        ) as mock_resolve:
            mock_resolve.side_effect = dns.resolver.NXDOMAIN()
            with pytest.raises(DNSResolutionError) as exc_info:
                await resolver.resolve("missing.example.test")

        assert exc_info.value.kind is FailureKind.DNS_ERROR
        assert "missing.example.test" in str(exc_info.value)

    async def test_dnspython_lifetime_timeout(self) -> None:
        resolver = DNSResolver("1.1.1.1:53", lifetime=1.0)
        with patch.object(
            resolver._resolver, "resolve_name", new_callable=AsyncMock,
        ) as mock_resolve:
            mock_resolve.side_effect = dns.resolver.LifetimeTimeout(timeout=1.0, errors=[])
            with pytest.raises(DNSResolutionError):
                await resolver.resolve("example.test")

    async def test_hung_resolver_bounded_by_lifetime(self) -> None:
        resolver = DNSResolver("1.1.1.1:53", lifetime=0.05)

        async def _hang(*args: object, **kwargs: object) -> None:
            await asyncio.sleep(5)

        with patch.object(resolver._resolver, "resolve_name", side_effect=_hang):
            with pytest.raises(DNSResolutionError, match="no answer from 1.1.1.1:53"):
                await resolver.resolve("example.test")

    async def test_empty_answer(self) -> None:
        resolver = DNSResolver("1.1.1.1:53")
        with patch.object(
            resolver._resolver, "resolve_name", new_callable=AsyncMock,
        ) as mock_resolve:
            mock_resolve.return_value = _answers()
            with pytest.raises(DNSResolutionError, match="no addresses"):
                await resolver.resolve("example.test")

    async def test_empty_hostname(self) -> None:
        resolver = DNSResolver("1.1.1.1:53")
        with pytest.raises(DNSResolutionError, match="empty hostname"):
            await resolver.resolve("")
