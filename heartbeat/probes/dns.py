"""DNS resolver bound to a single upstream server, queried over TCP."""

from __future__ import annotations

import asyncio
import ipaddress

import dns.asyncresolver
import dns.exception
import dns.nameserver

from heartbeat.probes.exceptions import DNSResolutionError

_DNS_PORT = 53


def split_address(address: str) -> tuple[str, int]:
    """Split ``host[:port]`` into (host, port). IPv6 hosts may be bracketed.

    >>> split_address("9.9.9.9:5353")
    ('9.9.9.9', 5353)
    >>> split_address("[2001:db8::1]:53")
    ('2001:db8::1', 53)
    >>> split_address("2001:db8::1")
    ('2001:db8::1', 53)
    """
    address = address.strip()
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest.lstrip(":")
        return host, int(port) if port else _DNS_PORT
    if address.count(":") == 1:
        host, port = address.split(":")
        return host, int(port)
    return address, _DNS_PORT


class DNSResolver:
    """Checks that names resolve, using one specific upstream nameserver.

    Only resolvability matters to callers; the addresses are returned for
    logging. Literal IP addresses must be filtered out by the caller.
    """

    def __init__(self, address: str, lifetime: float = 10.0) -> None:
        host, port = split_address(address)
        # Fails fast on a hostname: the nameserver must be an address.
        ipaddress.ip_address(host)
        self._address = f"{host}:{port}"
        self._lifetime = lifetime
        self._resolver = dns.asyncresolver.Resolver(configure=False)
        self._resolver.nameservers = [dns.nameserver.Do53Nameserver(host, port)]

    @property
    def address(self) -> str:
        return self._address

    async def resolve(self, hostname: str) -> list[str]:
        """Resolve *hostname* to its A/AAAA addresses.

        Raises:
            DNSResolutionError: empty name, NXDOMAIN, no answer, no reachable
                nameserver, or the lifetime ran out.
        """
        if not hostname:
            raise DNSResolutionError("DNS error : empty hostname")

        try:
            async with asyncio.timeout(self._lifetime):
                answers = await self._resolver.resolve_name(
                    hostname, tcp=True, lifetime=self._lifetime,
                )
        except TimeoutError as exc:
            raise DNSResolutionError(
                f"DNS error : {hostname} : no answer from {self._address} "
                f"within {self._lifetime:g}s"
            ) from exc
        except dns.exception.DNSException as exc:
            raise DNSResolutionError(f"DNS error : {hostname} : {exc}") from exc

        addresses = list(answers.addresses())
        if not addresses:
            raise DNSResolutionError(f"DNS error : {hostname} : no addresses")
        return addresses
