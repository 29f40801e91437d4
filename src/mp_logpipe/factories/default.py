"""Factories – the process-wide bootstrap logger.

Prefer constructing a logger with a factory and passing it explicitly.  The
default instance exists for bootstrap code that runs before wiring is
available.
"""
from __future__ import annotations

import threading

from mp_logpipe.core.logger import MultiSinkLogger
from mp_logpipe.factories.server import create_server_logger

_lock = threading.Lock()
_default: MultiSinkLogger | None = None


def get_default_logger() -> MultiSinkLogger:
    """Return the default logger, creating a server logger on first use."""
    global _default
    with _lock:
        if _default is None:
            _default = create_server_logger()
        return _default


def set_default_logger(logger: MultiSinkLogger | None) -> None:
    """Replace (or with ``None``, forget) the default logger."""
    global _default
    with _lock:
        _default = logger


__all__ = ["get_default_logger", "set_default_logger"]
