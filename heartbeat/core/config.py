"""Pydantic settings loaded from a YAML (or JSON) configuration document."""

from __future__ import annotations

import ipaddress
import json
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class ConfigError(Exception):
    """The configuration document is missing, unreadable, or invalid."""


class _ConfigModel(BaseModel):
    """Accepts both camelCase keys (legacy config.json layout) and snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class HTTPMethod(StrEnum):
    """Request methods supported by the HTTP probe."""

    HEAD = "HEAD"
    GET = "GET"
    POST = "POST"


class HTTPConfig(_ConfigModel):
    """Connection parameters for ``http`` and ``https`` sites."""

    port: int | None = None
    url: str = ""
    method: HTTPMethod = HTTPMethod.GET
    body: str | dict[str, Any] | list[Any] | None = None
    accept_403: bool = Field(default=False, alias="accept403")
    verify_cert: bool = True

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("port", mode="before")
    @classmethod
    def _zero_port_means_default(cls, value: Any) -> Any:
        return None if value == 0 else value

    @property
    def content(self) -> bytes:
        """Request body as bytes; structured bodies are sent as JSON."""
        if self.body is None:
            return b""
        if isinstance(self.body, str):
            return self.body.encode()
        return json.dumps(self.body).encode()


class MySQLConfig(_ConfigModel):
    """Connection parameters for ``mysql`` sites."""

    port: int = 3306
    username: str = ""
    password: SecretStr = SecretStr("")


class SQLServerConfig(_ConfigModel):
    """Connection parameters for ``sqlserver`` sites."""

    port: int = 1433
    username: str = ""
    password: SecretStr = SecretStr("")


class Site(_ConfigModel):
    """A service whose heartbeat is monitored.

    ``protocol`` is kept as a free string: an unknown protocol is reported
    when the site is probed, not when the document is loaded.
    """

    server: str
    protocol: str
    http: HTTPConfig = HTTPConfig()
    mysql: MySQLConfig = MySQLConfig()
    sqlserver: SQLServerConfig = SQLServerConfig()
    timeout_seconds: float | None = Field(default=None, gt=0)
    dns_timeout_seconds: float | None = Field(default=None, gt=0)
    connect_timeout_seconds: float | None = Field(default=None, gt=0)
    recipients: tuple[str, ...] = ()

    @field_validator("protocol", mode="before")
    @classmethod
    def _normalise_protocol(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("server", mode="before")
    @classmethod
    def _strip_server(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @property
    def is_literal_address(self) -> bool:
        """True when ``server`` is an IPv4/IPv6 address rather than a name."""
        try:
            ipaddress.ip_address(self.server)
        except ValueError:
            return False
        return True


class SenderConfig(_ConfigModel):
    """SMTP account used to send alerts."""

    server: str
    port: int = 587
    username: str = ""
    password: SecretStr = SecretStr("")
    from_address: str = ""
    security: Literal["starttls", "ssl", "none"] = "starttls"
    timeout_seconds: float = 30.0

    @property
    def sender(self) -> str:
        """Envelope/header sender; falls back to the login name."""
        return self.from_address or self.username


class ResolverConfig(_ConfigModel):
    """Upstream DNS server used to check that site names resolve."""

    address: str = "1.1.1.1:53"
    timeout_seconds: float = Field(default=2.0, gt=0)
    lifetime_seconds: float = Field(default=10.0, gt=0)


class TimeoutsConfig(_ConfigModel):
    """Protocol defaults for per-site timeout budgets."""

    default_seconds: float = Field(default=10.0, gt=0)
    connect_seconds: float = Field(default=3.0, gt=0)
    protocols: dict[str, float] = {
        "http": 10.0,
        "https": 10.0,
        "mysql": 5.0,
        "sqlserver": 5.0,
    }


class LoggingConfig(_ConfigModel):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "console"] = "json"


class Settings(_ConfigModel):
    """Root settings container."""

    sender: SenderConfig
    heartbeat_seconds: float = Field(default=60.0, gt=0)
    resolver: ResolverConfig = ResolverConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()
    sites: tuple[Site, ...]
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_resolver_keys(cls, data: Any) -> Any:
        # Legacy config.json documents kept the resolver settings at the top level.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        flat = {
            "address": data.pop("resolverAddress", None),
            "timeoutSeconds": data.pop("resolverTimeoutSeconds", None),
        }
        flat = {k: v for k, v in flat.items() if v is not None}
        if flat:
            resolver = dict(data.get("resolver") or {})
            for key, value in flat.items():
                resolver.setdefault(key, value)
            data["resolver"] = resolver
        return data


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML/JSON file and cache globally.

    Args:
        path: Path to the document. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.

    Raises:
        ConfigError: the file is missing, unparsable, or fails validation.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"corrupt configuration in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} does not contain a mapping")

    try:
        _settings = Settings(**raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration in {config_path}: {exc}") from exc
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading the default file if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
