"""Unit tests for RequestLoggingMiddleware."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from mp_logpipe.adapters import LegacyLogger, RequestLoggingMiddleware
from mp_logpipe.core import LogLevel, MultiSinkLogger
from mp_logpipe.testing import RecordingSink


class CallRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, str, Any]] = []

    def log(self, level: Any, message: str, data: Any = None, /) -> None:
        self.calls.append((level, message, data))


def _http_scope(path: str = "/items") -> dict[str, Any]:
    return {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [(b"user-agent", b"pytest-agent"), (b"accept", b"*/*")],
        "client": ("10.1.2.3", 5555),
    }


def _responding(status: int):  # type: ignore[no-untyped-def]
    async def app(scope, receive, send):  # type: ignore[no-untyped-def]
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b"ok"})

    return app


async def _receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def _run(middleware: RequestLoggingMiddleware, scope: dict[str, Any]) -> list[dict[str, Any]]:
    sent: list[dict[str, Any]] = []

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    asyncio.run(middleware(scope, _receive, send))
    return sent


class TestRequestLoggingMiddleware:
    def test_success_logged_at_info(self) -> None:
        recorder = CallRecorder()
        sent = _run(RequestLoggingMiddleware(_responding(200), recorder), _http_scope())
        assert [m["type"] for m in sent] == ["http.response.start", "http.response.body"]
        level, message, data = recorder.calls[0]
        assert (level, message) == ("info", "GET /items")
        assert data["status"] == 200
        assert data["user_agent"] == "pytest-agent"
        assert data["remote_addr"] == "10.1.2.3"
        assert data["duration_ms"] >= 0

    def test_client_error_logged_at_warn(self) -> None:
        recorder = CallRecorder()
        _run(RequestLoggingMiddleware(_responding(404), recorder), _http_scope("/missing"))
        level, message, data = recorder.calls[0]
        assert (level, message, data["status"]) == ("warn", "GET /missing", 404)

    def test_exception_logged_as_500_and_reraised(self) -> None:
        recorder = CallRecorder()

        async def broken(scope, receive, send):  # type: ignore[no-untyped-def]
            raise RuntimeError("handler blew up")

        with pytest.raises(RuntimeError, match="handler blew up"):
            _run(RequestLoggingMiddleware(broken, recorder), _http_scope())
        level, _, data = recorder.calls[0]
        assert (level, data["status"]) == ("warn", 500)

    def test_non_http_scope_passes_through(self) -> None:
        recorder = CallRecorder()
        seen: list[str] = []

        async def app(scope, receive, send):  # type: ignore[no-untyped-def]
            seen.append(scope["type"])

        _run(RequestLoggingMiddleware(app, recorder), {"type": "lifespan"})
        assert seen == ["lifespan"]
        assert recorder.calls == []

    def test_missing_headers_and_client(self) -> None:
        recorder = CallRecorder()
        _run(RequestLoggingMiddleware(_responding(204), recorder), {"type": "http", "method": "HEAD", "path": "/"})
        data = recorder.calls[0][2]
        assert (data["user_agent"], data["remote_addr"]) == (None, None)

    def test_through_legacy_logger(self) -> None:
        sink = RecordingSink()
        base = MultiSinkLogger()
        base.add_sink(sink)

        async def run() -> None:
            sent: list[dict[str, Any]] = []

            async def send(message: dict[str, Any]) -> None:
                sent.append(message)

            middleware = LegacyLogger(base, "http").middleware(_responding(503))
            await middleware(_http_scope(), _receive, send)
            await base.flush()

        asyncio.run(run())
        entry = sink.entries[0]
        assert entry.level is LogLevel.WARN
        assert entry.message == "GET /items"
        assert entry.component == "http"
        assert entry.data["status"] == 503


class TestWithStarlette:
    def test_starlette_application(self) -> None:
        from starlette.applications import Starlette
        from starlette.responses import PlainTextResponse
        from starlette.routing import Route
        from starlette.testclient import TestClient

        async def hello(request):  # type: ignore[no-untyped-def]
            return PlainTextResponse("hi")

        recorder = CallRecorder()
        app = Starlette(routes=[Route("/hello", hello)])
        app.add_middleware(RequestLoggingMiddleware, logger=recorder)

        response = TestClient(app).get("/hello")
        assert response.status_code == 200
        level, message, data = recorder.calls[-1]
        assert (level, message, data["status"]) == ("info", "GET /hello", 200)
