"""Exception hierarchy for protocol probes."""

from __future__ import annotations

from heartbeat.core.types import FailureKind


class ProbeError(Exception):
    """Base exception for all probe failures."""

    kind: FailureKind = FailureKind.PROBE_FAULT


class DNSResolutionError(ProbeError):
    """A site name could not be resolved."""

    kind = FailureKind.DNS_ERROR


class HTTPTransportError(ProbeError):
    """Connection refused, TLS failure, deadline exceeded, etc."""

    kind = FailureKind.HTTP_TRANSPORT_ERROR


class HTTPStatusError(ProbeError):
    """The server answered with an unacceptable status code."""

    kind = FailureKind.HTTP_STATUS_ERROR

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"HTTP error : status : {status_code} : {reason}")
        self.status_code = status_code
        self.reason = reason


class SQLConnectError(ProbeError):
    """Failed to establish a database connection."""

    kind = FailureKind.CONNECT_ERROR


class SQLQueryError(ProbeError):
    """The liveness query failed or ran past its deadline."""

    kind = FailureKind.QUERY_ERROR


class UnsupportedProtocolError(ProbeError):
    """No probe is registered for the site's protocol."""

    kind = FailureKind.UNSUPPORTED_PROTOCOL
