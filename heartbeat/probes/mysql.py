"""MySQL probe (PyMySQL driver)."""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import URL

from heartbeat.core.config import Site
from heartbeat.core.types import TimeoutBudget
from heartbeat.probes.sql import SQLProbe


class MySQLProbe(SQLProbe):
    protocols = ("mysql",)
    query = "SELECT table_name FROM information_schema.tables LIMIT 1"

    def url(self, site: Site) -> URL:
        cfg = site.mysql
        return URL.create(
            "mysql+pymysql",
            username=cfg.username or None,
            password=cfg.password.get_secret_value() or None,
            host=site.server,
            port=cfg.port,
        )

    def connect_args(self, budget: TimeoutBudget) -> dict[str, Any]:
        return {
            "connect_timeout": budget.total,
            "read_timeout": budget.total,
            "write_timeout": budget.total,
        }
