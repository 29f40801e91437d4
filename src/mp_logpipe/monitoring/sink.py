"""Monitoring – MonitoringSink feeds every entry to a LoggingMonitor."""
from __future__ import annotations

from typing import Any

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.monitoring.monitor import LoggingMonitor, get_default_monitor
from mp_logpipe.sinks.base import BaseSink


class MonitoringSink(BaseSink):
    def __init__(self, monitor: LoggingMonitor | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.monitor = monitor or get_default_monitor()

    async def _emit(self, entry: LogEntry) -> None:
        self.monitor.record_entry(entry)


__all__ = ["MonitoringSink"]
