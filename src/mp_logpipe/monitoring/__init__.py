"""Monitoring – counters, health classification and the pipeline self-test."""

from mp_logpipe.monitoring.health import LoggingHealthCheck, start_health_checks
from mp_logpipe.monitoring.monitor import (
    HealthCheckResult,
    HealthStatus,
    LoggingMetrics,
    LoggingMonitor,
    entry_size,
    get_default_monitor,
)
from mp_logpipe.monitoring.self_test import SelfTestResult, run_self_test
from mp_logpipe.monitoring.sink import MonitoringSink

__all__ = [
    "HealthCheckResult",
    "HealthStatus",
    "LoggingHealthCheck",
    "LoggingMetrics",
    "LoggingMonitor",
    "MonitoringSink",
    "SelfTestResult",
    "entry_size",
    "get_default_monitor",
    "run_self_test",
    "start_health_checks",
]
