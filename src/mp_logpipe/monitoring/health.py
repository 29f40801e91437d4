"""Monitoring – health-check adapter and periodic checks."""
from __future__ import annotations

import asyncio
import time
from typing import Callable

from mp_logpipe.diagnostics import get_logger
from mp_logpipe.monitoring.monitor import HealthCheckResult, LoggingMonitor, get_default_monitor

_log = get_logger(__name__)


class LoggingHealthCheck:
    """Exposes a :class:`LoggingMonitor` as a named async health check."""

    def __init__(self, monitor: LoggingMonitor | None = None, name: str = "logging") -> None:
        self._monitor = monitor or get_default_monitor()
        self._name = name
        self.latency_ms = 0.0

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> HealthCheckResult:
        return self._monitor.health_check()

    async def timed_check(self) -> HealthCheckResult:
        start = time.monotonic()
        result = await self.check()
        self.latency_ms = (time.monotonic() - start) * 1000
        return result


def start_health_checks(
    monitor: LoggingMonitor | None = None,
    interval: float = 60.0,
) -> Callable[[], None]:
    """Run a health check every *interval* seconds on the running loop.

    Non-healthy results are reported on the diagnostics channel.  Returns a
    callable that stops the checks.
    """
    target = monitor or get_default_monitor()

    async def _loop() -> None:
        while True:
            await asyncio.sleep(interval)
            result = target.health_check()
            if not result.healthy:
                _log.warning("logging_health", status=result.status.value, detail=result.message)

    task = asyncio.get_running_loop().create_task(_loop())

    def stop() -> None:
        task.cancel()

    return stop


__all__ = ["LoggingHealthCheck", "start_health_checks"]
