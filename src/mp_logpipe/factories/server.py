"""Factories – server-side logger assembly."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable

from mp_logpipe.config.settings import LoggingSettings
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.logger import MultiSinkLogger
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
from mp_logpipe.sinks.console import ConsoleSink
from mp_logpipe.sinks.error_tracking import (
    ErrorTrackingClient,
    ServerErrorTrackingSink,
    init_error_tracking,
)
from mp_logpipe.sinks.server_file import ServerFileSink


def create_server_logger(
    settings: LoggingSettings | None = None,
    *,
    component: str | None = None,
    min_level: LogLevel | str | int | None = None,
    enable_console: bool | None = None,
    enable_file: bool | None = None,
    enable_error_tracking: bool | None = None,
    log_dir: str | os.PathLike[str] = "./logs",
    log_file_name: str = "server.log",
    max_file_size: int = 10 * 1024 * 1024,
    max_files: int = 5,
    tags: Iterable[str] | None = None,
    context: dict[str, Any] | None = None,
    user_id: str | None = None,
    monitor: LoggingMonitor | None = None,
    error_tracking_client: ErrorTrackingClient | None = None,
    clock: Clock | None = None,
) -> MultiSinkLogger:
    """Build a server logger from *settings* (default: :func:`load_config`).

    Explicit ``enable_*`` arguments win over the feature flags.  Settings
    that fail to load or validate, or a *component* outside the rollout,
    yield a console-only logger.  A fresh ``server_...`` session id is assigned.
    """
    settings, load_problems = load_settings(settings)
    problems, redactor = check_settings(settings)
    problems = load_problems + problems
    level = min_level if min_level is not None else settings.log_levels.server
    logger = MultiSinkLogger(
        level,
        tags=tags,
        context=context,
        user_id=user_id,
        session_id=new_session_id("server", clock),
        clock=clock,
    )
    if problems:
        return console_only(logger, redactor, colorize=True, reason="invalid_config", problems=problems)
    if outside_rollout(settings, component, user_id):
        return console_only(logger, redactor, colorize=True, reason="outside_rollout", component=component)

    features = settings.features
    if features.console_logging if enable_console is None else enable_console:
        logger.add_sink(ConsoleSink(colorize=True, redactor=redactor, min_level=level))
    if features.file_logging if enable_file is None else enable_file:
        logger.add_sink(
            ServerFileSink(
                Path(log_dir) / log_file_name,
                max_file_size=max_file_size,
                max_files=max_files,
                redactor=redactor,
                min_level=level,
            )
        )
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
            ServerErrorTrackingSink(error_tracking_client, redactor=redactor, monitor=monitor)
        )
    if features.monitoring:
        logger.add_sink(MonitoringSink(monitor))
    return logger


def create_request_logger(service: str, settings: LoggingSettings | None = None, **kwargs: Any) -> MultiSinkLogger:
    """Logger for a long-running HTTP service, with its own log file."""
    environment = load_settings(settings)[0].environment
    kwargs.setdefault("log_file_name", f"{service}.log")
    kwargs.setdefault("tags", [service, "server"])
    kwargs.setdefault("context", {"service": service, "environment": environment})
    return create_server_logger(settings, **kwargs)


def create_function_logger(
    function_name: str,
    settings: LoggingSettings | None = None,
    **kwargs: Any,
) -> MultiSinkLogger:
    """Logger for a short-lived serverless function; no local file."""
    environment = load_settings(settings)[0].environment
    kwargs.setdefault("min_level", LogLevel.DEBUG)
    kwargs.setdefault("enable_file", False)
    kwargs.setdefault("tags", ["function", function_name])
    kwargs.setdefault(
        "context",
        {"service": "function", "function": function_name, "environment": environment},
    )
    return create_server_logger(settings, **kwargs)


__all__ = ["create_function_logger", "create_request_logger", "create_server_logger"]
