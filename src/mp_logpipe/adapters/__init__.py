"""Adapters – legacy call shapes, ASGI middleware and the stdlib bridge."""

from mp_logpipe.adapters.asgi import RequestLoggingMiddleware
from mp_logpipe.adapters.call_shapes import CallKind, CallShape, parse_call
from mp_logpipe.adapters.legacy import (
    LegacyLogger,
    create_api_logger,
    create_legacy_logger,
    get_global_logger,
)
from mp_logpipe.adapters.stdlib import (
    LoggingBridgeHandler,
    install_logging_bridge,
    uninstall_logging_bridge,
)

__all__ = [
    "CallKind",
    "CallShape",
    "LegacyLogger",
    "LoggingBridgeHandler",
    "RequestLoggingMiddleware",
    "create_api_logger",
    "create_legacy_logger",
    "get_global_logger",
    "install_logging_bridge",
    "parse_call",
    "uninstall_logging_bridge",
]
