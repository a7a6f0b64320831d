"""Heartbeat monitor — periodic liveness probes for HTTP and SQL services."""

__version__ = "0.4.0"
