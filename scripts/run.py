#!/usr/bin/env python3
"""Heartbeat monitor entrypoint — loads config, probes sites until interrupted.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file (YAML, or a legacy config.json)
    python scripts/run.py --config config.json

    # Override log level
    python scripts/run.py --log-level DEBUG

    # Print version and build information
    python scripts/run.py --version
"""

from __future__ import annotations

import argparse
import asyncio
import platform
import signal
import sys
from importlib import metadata

import structlog

from heartbeat import __version__
from heartbeat.core.config import ConfigError, load_settings
from heartbeat.core.logging import setup_logging
from heartbeat.monitor.factory import create_monitor_stack

logger = structlog.get_logger(__name__)


def version_string() -> str:
    try:
        installed = metadata.version("heartbeat-monitor")
    except metadata.PackageNotFoundError:
        installed = __version__
    return f"heartbeat {installed} (python {platform.python_version()})"


async def run(args: argparse.Namespace) -> int:
    """Probe configured sites until SIGINT/SIGTERM."""
    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        setup_logging(level=args.log_level or "INFO")
        logger.error("config_load_failed", error=str(exc))
        return 1

    setup_logging(
        level=args.log_level or settings.logging.level,
        fmt=settings.logging.format,
    )

    scheduler, notifier = create_monitor_stack(settings)

    logger.info(
        "heartbeat_starting",
        version=__version__,
        sites=len(settings.sites),
        interval_secs=settings.heartbeat_seconds,
        resolver=settings.resolver.address,
    )

    # ── Shutdown on signal ───────────────────────────────────────
    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        scheduler.request_stop()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    await scheduler.start()
    try:
        await scheduler.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
        await scheduler.stop()

    # ── Graceful shutdown ────────────────────────────────────────
    await notifier.close()
    scheduler.dispatcher.close()
    logger.info("heartbeat_stopped", ticks=scheduler.ticks)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monitor the heartbeat of HTTP(S), MySQL and SQL Server services.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML/JSON (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=version_string(),
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()
    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
