"""Adapters – ASGI request-logging middleware.

One summary entry per HTTP request once the response has completed:
``method``, ``path``, ``status``, ``duration_ms``, ``user_agent`` and
``remote_addr``, at WARN for 4xx/5xx responses and INFO otherwise.  An
unhandled exception is logged as status 500 and re-raised.
"""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send


class SupportsLevelLog(Protocol):
    def log(self, level: Any, message: str, data: Any = None, /) -> None: ...


class RequestLoggingMiddleware:
    """Works with any ASGI framework (Starlette, FastAPI, ...).

    Parameters
    ----------
    app:
        The inner ASGI application.
    logger:
        Anything with ``log(level, message, data)``: a
        :class:`~mp_logpipe.adapters.legacy.LegacyLogger` or a
        :class:`~mp_logpipe.core.logger.MultiSinkLogger`.
    """

    def __init__(self, app: "ASGIApp", logger: SupportsLevelLog) -> None:
        self.app = app
        self._logger = logger

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_capturing(message: Any) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_capturing)
        except Exception:
            status_code = 500
            raise
        finally:
            self._log_request(scope, status_code, (time.perf_counter() - start) * 1000)

    def _log_request(self, scope: "Scope", status_code: int, duration_ms: float) -> None:
        headers = dict(scope.get("headers") or [])
        client = scope.get("client")
        method = scope.get("method", "")
        path = scope.get("path", "")
        self._logger.log(
            "warn" if status_code >= 400 else "info",
            f"{method} {path}",
            {
                "method": method,
                "path": path,
                "status": status_code,
                "duration_ms": round(duration_ms, 3),
                "user_agent": headers.get(b"user-agent", b"").decode("latin-1") or None,
                "remote_addr": client[0] if client else None,
            },
        )


__all__ = ["RequestLoggingMiddleware"]
