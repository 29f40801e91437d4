"""Factories – browser-session style client logger assembly."""
from __future__ import annotations

from typing import Any, Iterable

from mp_logpipe.config.settings import LoggingSettings
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.logger import MultiSinkLogger
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.factories.common import (
    check_settings,
    console_only,
    load_settings,
    new_session_id,
    outside_rollout,
)
from mp_logpipe.kernel.time import Clock
from mp_logpipe.monitoring.monitor import LoggingMonitor, get_default_monitor
from mp_logpipe.monitoring.sink import MonitoringSink
from mp_logpipe.sinks.client_file import ClientFileSink
from mp_logpipe.sinks.console import ConsoleSink
from mp_logpipe.sinks.error_tracking import (
    ClientErrorTrackingSink,
    ErrorTrackingClient,
    init_error_tracking,
)
from mp_logpipe.sinks.transport import BatchTransport, BeaconTransport

_log = get_logger(__name__)


def create_client_logger(
    settings: LoggingSettings | None = None,
    *,
    endpoint: str | None = None,
    component: str | None = None,
    min_level: LogLevel | str | int | None = None,
    enable_console: bool | None = None,
    enable_file: bool | None = None,
    enable_error_tracking: bool | None = None,
    batch_size: int = 10,
    flush_interval: float | None = None,
    filename: str = "client.log",
    tags: Iterable[str] | None = None,
    context: dict[str, Any] | None = None,
    user_id: str | None = None,
    monitor: LoggingMonitor | None = None,
    transport: BatchTransport | None = None,
    beacon: BeaconTransport | None = None,
    error_tracking_client: ErrorTrackingClient | None = None,
    register_unload: bool = False,
    clock: Clock | None = None,
) -> MultiSinkLogger:
    """Build a client logger whose file sink posts batches to *endpoint*.

    File logging needs an *endpoint*; without one it is skipped.  The flush
    interval defaults to ``performance.flush_interval_ms``.
    """
    settings, load_problems = load_settings(settings)
    problems, redactor = check_settings(settings)
    problems = load_problems + problems
    level = min_level if min_level is not None else settings.log_levels.client
    session_id = new_session_id("client", clock)
    logger = MultiSinkLogger(
        level,
        tags=tags,
        context=context,
        user_id=user_id,
        session_id=session_id,
        clock=clock,
    )
    if problems:
        return console_only(logger, redactor, colorize=False, reason="invalid_config", problems=problems)
    if outside_rollout(settings, component, user_id):
        return console_only(logger, redactor, colorize=False, reason="outside_rollout", component=component)

    features = settings.features
    if features.console_logging if enable_console is None else enable_console:
        logger.add_sink(ConsoleSink(colorize=False, redactor=redactor, min_level=level))
    if features.file_logging if enable_file is None else enable_file:
        if endpoint:
            interval = flush_interval
            if interval is None:
                interval = settings.performance.flush_interval_ms / 1000
            logger.add_sink(
                ClientFileSink(
                    endpoint,
                    filename=filename,
                    batch_size=batch_size,
                    flush_interval=interval,
                    session_id=session_id,
                    transport=transport,
                    beacon=beacon,
                    redactor=redactor,
                    clock=clock,
                    register_unload=register_unload,
                    min_level=level,
                )
            )
        else:
            _log.info("client_file_sink_skipped", reason="no_endpoint")
    monitor = monitor or get_default_monitor()
    tracking = (
        features.sentry_integration and settings.sentry.enabled
        if enable_error_tracking is None
        else enable_error_tracking
    )
    if tracking:
        if error_tracking_client is None:
            init_error_tracking(settings.sentry, redactor)
        logger.add_sink(
            ClientErrorTrackingSink(error_tracking_client, redactor=redactor, monitor=monitor)
        )
    if features.monitoring:
        logger.add_sink(MonitoringSink(monitor))
    return logger


__all__ = ["create_client_logger"]
