"""Adapters – forward stdlib ``logging`` records into the pipeline.

Existing ``logging.getLogger(...)`` call sites keep working and their
records reach every sink.  Records from ``mp_logpipe`` itself are skipped so
the diagnostics channel cannot feed back into the pipeline.
"""
from __future__ import annotations

import logging
from typing import Any

from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.logger import MultiSinkLogger
from mp_logpipe.diagnostics import DIAGNOSTICS_LOGGER

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def level_from_record(levelno: int) -> LogLevel:
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


class LoggingBridgeHandler(logging.Handler):
    """:class:`logging.Handler` that re-emits records on a :class:`MultiSinkLogger`.

    The record's ``extra`` attributes become the entry context, together with
    the originating ``logger`` name; ``exc_info`` becomes the entry error.
    """

    def __init__(self, logger: MultiSinkLogger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        name = record.name
        if name == DIAGNOSTICS_LOGGER or name.startswith(DIAGNOSTICS_LOGGER + "."):
            return False
        return bool(super().filter(record))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            context: dict[str, Any] = {
                key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS
            }
            context["logger"] = record.name
            error = record.exc_info[1] if record.exc_info else None
            self._logger.log(
                level_from_record(record.levelno),
                record.getMessage(),
                context,
                error=error,
                component=record.name,
                action=record.funcName,
            )
        except Exception:  # noqa: BLE001
            self.handleError(record)


def install_logging_bridge(
    logger: MultiSinkLogger,
    target: logging.Logger | None = None,
    level: int = logging.NOTSET,
) -> LoggingBridgeHandler:
    """Attach a :class:`LoggingBridgeHandler` to *target* (root by default)."""
    handler = LoggingBridgeHandler(logger, level)
    (target or logging.getLogger()).addHandler(handler)
    return handler


def uninstall_logging_bridge(handler: LoggingBridgeHandler, target: logging.Logger | None = None) -> None:
    (target or logging.getLogger()).removeHandler(handler)


__all__ = [
    "LoggingBridgeHandler",
    "install_logging_bridge",
    "level_from_record",
    "uninstall_logging_bridge",
]
