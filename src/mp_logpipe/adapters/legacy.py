"""Adapters – LegacyLogger keeps historical call sites working unchanged.

Every method accepts the positional shapes listed in
:mod:`mp_logpipe.adapters.call_shapes` and turns them into one canonical
entry: the parsed message, a context of ``{**fixed_context, "component":
..., "data": ..., "errorData": ...}`` (the last two only when given), the
parsed exception, and ``component``/``action``/``data`` on the entry.
"""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from mp_logpipe.adapters.asgi import RequestLoggingMiddleware
from mp_logpipe.adapters.call_shapes import parse_call
from mp_logpipe.config.settings import LoggingSettings
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.logger import MultiSinkLogger
from mp_logpipe.factories.common import load_settings
from mp_logpipe.factories.default import get_default_logger
from mp_logpipe.factories.server import create_server_logger

if TYPE_CHECKING:
    from starlette.types import ASGIApp


class LegacyLogger:
    """Legacy-shaped facade over a :class:`MultiSinkLogger`.

    Parameters
    ----------
    logger:
        The canonical logger every call is routed to.
    component:
        Default component when a call does not name one.
    context:
        Fixed context merged into every entry.
    """

    def __init__(
        self,
        logger: MultiSinkLogger,
        component: str = "legacy",
        context: dict[str, Any] | None = None,
    ) -> None:
        self._logger = logger
        self.component = component
        self.context: dict[str, Any] = dict(context or {})

    @property
    def logger(self) -> MultiSinkLogger:
        return self._logger

    def _emit(self, level: LogLevel, args: tuple[Any, ...]) -> None:
        shape = parse_call(args)
        component = shape.component or self.component
        context: dict[str, Any] = {**self.context, "component": component}
        if shape.data is not None:
            context["data"] = shape.data
        if shape.error_data is not None:
            context["errorData"] = shape.error_data
        self._logger.log(
            level,
            shape.message,
            context,
            error=shape.error,
            component=component,
            action=level.label,
            data=shape.data,
        )

    def debug(self, *args: Any) -> None:
        self._emit(LogLevel.DEBUG, args)

    def info(self, *args: Any) -> None:
        self._emit(LogLevel.INFO, args)

    def warn(self, *args: Any) -> None:
        self._emit(LogLevel.WARN, args)

    warning = warn

    def error(self, *args: Any) -> None:
        self._emit(LogLevel.ERROR, args)

    def log(self, level: LogLevel | str | int, *args: Any) -> None:
        """``log("warn", ...)``; an unknown level name logs at INFO."""
        try:
            parsed = LogLevel.parse(level)
        except ValueError:
            parsed = LogLevel.INFO
        self._emit(parsed, args)

    def child(self, name: str, context: dict[str, Any] | None = None) -> "LegacyLogger":
        """Sub-logger sharing the same canonical logger.

        The component becomes ``parent.name`` and *context* is merged over
        the parent's fixed context.
        """
        return LegacyLogger(
            self._logger,
            component=f"{self.component}.{name}",
            context={**self.context, **(context or {})},
        )

    def middleware(self, app: "ASGIApp") -> RequestLoggingMiddleware:
        return RequestLoggingMiddleware(app, self)

    async def flush(self) -> None:
        await self._logger.flush()


def create_legacy_logger(
    component: str = "legacy",
    logger: MultiSinkLogger | None = None,
    settings: LoggingSettings | None = None,
) -> LegacyLogger:
    """Legacy facade over *logger*, or over a fresh console/error-tracking logger."""
    if logger is None:
        logger = create_server_logger(
            settings,
            tags=["legacy-logger", component],
            enable_file=False,
        )
    return LegacyLogger(logger, component)


def create_api_logger(
    api_name: str | None = None,
    logger: MultiSinkLogger | None = None,
    settings: LoggingSettings | None = None,
) -> LegacyLogger:
    """Legacy facade for an API handler; error tracking only with a DSN."""
    component = f"api.{api_name}" if api_name else "api"
    if logger is None:
        logger = create_server_logger(
            settings,
            tags=["legacy-logger", component],
            enable_file=False,
            enable_error_tracking=bool(load_settings(settings)[0].sentry.dsn),
        )
    return LegacyLogger(logger, component)


_global_lock = threading.Lock()
_global: LegacyLogger | None = None


def get_global_logger() -> LegacyLogger:
    """Legacy facade over the default logger, component ``global``."""
    global _global
    with _global_lock:
        if _global is None:
            _global = LegacyLogger(get_default_logger(), "global")
        return _global


__all__ = [
    "LegacyLogger",
    "create_api_logger",
    "create_legacy_logger",
    "get_global_logger",
]
