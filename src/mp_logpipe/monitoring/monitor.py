"""Monitoring – LoggingMonitor: running counters and health classification."""
from __future__ import annotations

import dataclasses
import enum
import json
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Any

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.kernel.time import Clock, SystemClock

STALE_AFTER = timedelta(minutes=5)
DEGRADED_ERROR_RATE = 5.0
UNHEALTHY_ERROR_RATE = 10.0
LARGE_AVERAGE_SIZE = 10_000


class HealthStatus(str, enum.Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclasses.dataclass(frozen=True)
class LoggingMetrics:
    """Point-in-time copy of the monitor counters.

    ``error_rate`` is a percentage of ``total_logs``; ``average_log_size``
    is measured in characters of serialised entry over the sample window.
    """

    total_logs: int = 0
    logs_by_level: dict[str, int] = dataclasses.field(
        default_factory=lambda: {level.name: 0 for level in LogLevel}
    )
    error_rate: float = 0.0
    last_log_time: datetime | None = None
    average_log_size: float = 0.0
    error_tracking_events: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["last_log_time"] = self.last_log_time.isoformat() if self.last_log_time else None
        return data


@dataclasses.dataclass(frozen=True)
class HealthCheckResult:
    status: HealthStatus
    message: str
    metrics: LoggingMetrics
    timestamp: datetime

    @property
    def healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "metrics": self.metrics.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


def entry_size(entry: LogEntry) -> int:
    """Length of the JSON rendering of *entry*."""
    return len(json.dumps(entry.to_dict(), default=str))


class LoggingMonitor:
    """Thread-safe counters over the entries a process emits.

    Parameters
    ----------
    clock:
        Time source for ``last_log_time`` and staleness.
    sample_window:
        Number of most recent entry sizes averaged.
    """

    def __init__(self, clock: Clock | None = None, sample_window: int = 1000) -> None:
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._sizes: deque[int] = deque(maxlen=sample_window)
        self._by_level: dict[LogLevel, int] = {level: 0 for level in LogLevel}
        self._total = 0
        self._last: datetime | None = None
        self._error_tracking_events = 0

    def record(self, level: LogLevel | str | int, size: int = 0) -> None:
        level = LogLevel.parse(level)
        with self._lock:
            self._total += 1
            self._by_level[level] += 1
            self._last = self._clock.now()
            self._sizes.append(size)

    def record_entry(self, entry: LogEntry) -> None:
        self.record(entry.level, entry_size(entry))

    def record_error_tracking_event(self) -> None:
        with self._lock:
            self._error_tracking_events += 1

    def metrics(self) -> LoggingMetrics:
        with self._lock:
            total = self._total
            errors = self._by_level[LogLevel.ERROR]
            return LoggingMetrics(
                total_logs=total,
                logs_by_level={level.name: count for level, count in self._by_level.items()},
                error_rate=(errors / total) * 100 if total else 0.0,
                last_log_time=self._last,
                average_log_size=sum(self._sizes) / len(self._sizes) if self._sizes else 0.0,
                error_tracking_events=self._error_tracking_events,
            )

    def health_check(self) -> HealthCheckResult:
        """Classify the current metrics.

        Inactivity and an error rate above 5 % degrade; above 10 % is
        unhealthy.  A large average entry size degrades a healthy result.
        """
        now = self._clock.now()
        metrics = self.metrics()
        status = HealthStatus.HEALTHY
        message = "Logging system is operating normally"

        if metrics.last_log_time is None:
            status = HealthStatus.DEGRADED
            message = "No activity: no logs recorded yet"
        elif now - metrics.last_log_time > STALE_AFTER:
            status = HealthStatus.DEGRADED
            message = "No recent log activity detected"

        if metrics.error_rate > UNHEALTHY_ERROR_RATE:
            status = HealthStatus.UNHEALTHY
            message = f"High error rate: {metrics.error_rate:.2f}%"
        elif metrics.error_rate > DEGRADED_ERROR_RATE:
            status = HealthStatus.DEGRADED
            message = f"Elevated error rate: {metrics.error_rate:.2f}%"

        if metrics.average_log_size > LARGE_AVERAGE_SIZE and status is HealthStatus.HEALTHY:
            status = HealthStatus.DEGRADED
            message = f"Large average log size: {metrics.average_log_size:.0f} characters"

        return HealthCheckResult(status=status, message=message, metrics=metrics, timestamp=now)

    def reset(self) -> None:
        with self._lock:
            self._sizes.clear()
            self._by_level = {level: 0 for level in LogLevel}
            self._total = 0
            self._last = None
            self._error_tracking_events = 0

    def _recommendations(self, metrics: LoggingMetrics) -> list[str]:
        recommendations = []
        if metrics.error_rate > DEGRADED_ERROR_RATE:
            recommendations.append("- Consider investigating high error rates")
        if metrics.average_log_size > LARGE_AVERAGE_SIZE / 2:
            recommendations.append("- Review log content size - consider reducing verbosity")
        if metrics.error_tracking_events == 0 and metrics.logs_by_level["ERROR"] > 0:
            recommendations.append("- Check error tracking integration - errors not reaching it")
        if metrics.total_logs == 0:
            recommendations.append("- Logging system may not be properly configured")
        return recommendations or ["- System is operating optimally"]

    def report(self) -> str:
        """Render a plain-text metrics report."""
        health = self.health_check()
        metrics = health.metrics
        by_level = metrics.logs_by_level
        last = metrics.last_log_time.isoformat() if metrics.last_log_time else "Never"
        lines = [
            "Logging System Metrics Report",
            "=============================",
            f"Generated: {health.timestamp.isoformat()}",
            f"Status: {health.status.value.upper()} - {health.message}",
            "",
            "Log Statistics:",
            f"- Total Logs: {metrics.total_logs}",
            f"- Debug Logs: {by_level['DEBUG']}",
            f"- Info Logs: {by_level['INFO']}",
            f"- Warning Logs: {by_level['WARN']}",
            f"- Error Logs: {by_level['ERROR']}",
            f"- Error Rate: {metrics.error_rate:.2f}%",
            "",
            "Performance:",
            f"- Average Log Size: {metrics.average_log_size:.0f} characters",
            f"- Last Log: {last}",
            "",
            "Error Tracking:",
            f"- Events: {metrics.error_tracking_events}",
            "",
            "Recommendations:",
            *self._recommendations(metrics),
        ]
        return "\n".join(lines)


_default_monitor = LoggingMonitor()


def get_default_monitor() -> LoggingMonitor:
    """Process-wide monitor used by the factories."""
    return _default_monitor


__all__ = [
    "HealthCheckResult",
    "HealthStatus",
    "LoggingMetrics",
    "LoggingMonitor",
    "entry_size",
    "get_default_monitor",
]
