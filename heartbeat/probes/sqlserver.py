"""SQL Server probe (pymssql driver)."""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy.engine import URL

from heartbeat.core.config import Site
from heartbeat.core.types import TimeoutBudget
from heartbeat.probes.sql import SQLProbe

_APP_NAME = "heartbeat"


class SQLServerProbe(SQLProbe):
    protocols = ("sqlserver",)
    query = "SELECT TOP 1 name FROM sys.tables"

    def url(self, site: Site) -> URL:
        cfg = site.sqlserver
        return URL.create(
            "mssql+pymssql",
            username=cfg.username or None,
            password=cfg.password.get_secret_value() or None,
            host=site.server,
            port=cfg.port,
        )

    def connect_args(self, budget: TimeoutBudget) -> dict[str, Any]:
        # pymssql only takes whole seconds.
        seconds = max(1, math.ceil(budget.total))
        return {
            "login_timeout": seconds,
            "timeout": seconds,
            "appname": _APP_NAME,
        }
