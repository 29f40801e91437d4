"""Diagnostics – the library's own fallback logging channel.

Sinks never raise into the caller, so their failures (dropped batches, write
errors, configuration problems, degraded health) are reported here instead,
as structured ``structlog`` events.  Loggers are named after the emitting
module, so stdlib routing puts them all under the ``mp_logpipe`` logger.
"""
from __future__ import annotations

import logging
from typing import IO, Any

import structlog

DIAGNOSTICS_LOGGER = "mp_logpipe"


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def configure_diagnostics(
    level: int = logging.WARNING,
    *,
    redact: bool = True,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Configure structlog for JSON output through the stdlib.

    Only the ``mp_logpipe`` stdlib logger receives the handler; the root
    logger is left alone.  When *redact* is true every diagnostics event is
    passed through the redaction engine first, so a failing sink cannot leak
    the payload it failed to deliver.

    Returns the installed handler.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if redact:
        from mp_logpipe.redaction.redactor import Redactor

        redactor = Redactor()

        def _redact(logger: Any, method: Any, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
            return redactor.redact(event_dict)

        shared_processors.insert(0, _redact)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    target = logging.getLogger(DIAGNOSTICS_LOGGER)
    for existing in list(target.handlers):
        if getattr(existing, "_mp_logpipe_diagnostics", False):
            target.removeHandler(existing)
    handler._mp_logpipe_diagnostics = True  # type: ignore[attr-defined]
    target.addHandler(handler)
    target.setLevel(level)
    target.propagate = False
    return handler


__all__ = ["DIAGNOSTICS_LOGGER", "configure_diagnostics", "get_logger"]
