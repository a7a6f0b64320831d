"""Core module — config, types, logging."""

from heartbeat.core.config import (
    ConfigError,
    HTTPConfig,
    HTTPMethod,
    MySQLConfig,
    SenderConfig,
    Settings,
    Site,
    SQLServerConfig,
    get_settings,
    load_settings,
    reset_settings,
)
from heartbeat.core.logging import setup_logging
from heartbeat.core.types import (
    FailureKind,
    ProbeOutcome,
    Threshold,
    ThresholdBreach,
    TimeoutBudget,
)

__all__ = [
    "ConfigError",
    "FailureKind",
    "HTTPConfig",
    "HTTPMethod",
    "MySQLConfig",
    "ProbeOutcome",
    "SQLServerConfig",
    "SenderConfig",
    "Settings",
    "Site",
    "Threshold",
    "ThresholdBreach",
    "TimeoutBudget",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
