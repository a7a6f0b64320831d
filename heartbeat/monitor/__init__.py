"""Probe dispatching and scheduling."""

from heartbeat.monitor.dispatcher import ProbeDispatcher
from heartbeat.monitor.factory import create_monitor_stack, default_probes
from heartbeat.monitor.scheduler import ProbeScheduler, SchedulerState

__all__ = [
    "ProbeDispatcher",
    "ProbeScheduler",
    "SchedulerState",
    "create_monitor_stack",
    "default_probes",
]
