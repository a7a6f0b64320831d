"""Protocol probes, phase timing and DNS resolution."""

from heartbeat.probes.base import ProtocolProbe
from heartbeat.probes.dns import DNSResolver
from heartbeat.probes.exceptions import (
    DNSResolutionError,
    HTTPStatusError,
    HTTPTransportError,
    ProbeError,
    SQLConnectError,
    SQLQueryError,
    UnsupportedProtocolError,
)
from heartbeat.probes.http import HTTPProbe
from heartbeat.probes.mysql import MySQLProbe
from heartbeat.probes.sql import SQLProbe
from heartbeat.probes.sqlserver import SQLServerProbe
from heartbeat.probes.timing import Phase, PhaseTimer

__all__ = [
    "DNSResolutionError",
    "DNSResolver",
    "HTTPProbe",
    "HTTPStatusError",
    "HTTPTransportError",
    "MySQLProbe",
    "Phase",
    "PhaseTimer",
    "ProbeError",
    "ProtocolProbe",
    "SQLConnectError",
    "SQLProbe",
    "SQLQueryError",
    "SQLServerProbe",
    "UnsupportedProtocolError",
]
