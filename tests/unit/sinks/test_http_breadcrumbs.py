"""Unit tests for the ``http`` breadcrumb helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import patch

from mp_logpipe.sinks import (
    add_api_error_breadcrumb,
    add_api_request_breadcrumb,
    add_api_response_breadcrumb,
)
from mp_logpipe.testing import FakeErrorTrackingClient, FrozenClock

_URL = "https://user:pw@api.example.com/v1/orders?token=abc#top"
_SAFE_URL = "https://[CREDENTIALS_REDACTED]@api.example.com/v1/orders?[QUERY_REDACTED]"


class BrokenClient(FakeErrorTrackingClient):
    def add_breadcrumb(self, **kwargs: object) -> None:  # type: ignore[override]
        raise RuntimeError("sdk exploded")


class TestRequestBreadcrumb:
    def test_url_is_sanitized(self) -> None:
        client = FakeErrorTrackingClient()
        clock = FrozenClock(datetime(2025, 3, 1, tzinfo=UTC))
        assert add_api_request_breadcrumb("GET", _URL, client=client, clock=clock)
        crumb = client.breadcrumbs[0]
        assert (crumb.category, crumb.level) == ("http", "info")
        assert crumb.message == f"GET {_SAFE_URL}"
        assert crumb.data == {"method": "GET", "url": _SAFE_URL}
        assert crumb.timestamp == clock.now()
        assert "abc" not in repr(crumb)

    def test_optional_fields(self) -> None:
        client = FakeErrorTrackingClient()
        add_api_request_breadcrumb(
            "POST",
            "https://api.example.com/v1/orders",
            status=201,
            duration_ms=12.5,
            size=512,
            client=client,
        )
        assert client.breadcrumbs[0].data == {
            "method": "POST",
            "url": "https://api.example.com/v1/orders",
            "status": 201,
            "duration_ms": 12.5,
            "response_size": 512,
        }

    def test_inactive_client_records_nothing(self) -> None:
        client = FakeErrorTrackingClient(active=False)
        assert not add_api_request_breadcrumb("GET", _URL, client=client)
        assert client.breadcrumbs == []

    def test_client_failure_is_silent(self) -> None:
        assert not add_api_request_breadcrumb("GET", _URL, client=BrokenClient())

    def test_defaults_to_sentry_sdk(self) -> None:
        with patch("mp_logpipe.sinks.error_tracking.sentry_sdk") as sdk:
            sdk.is_initialized.return_value = False
            assert not add_api_request_breadcrumb("GET", _URL)
            sdk.add_breadcrumb.assert_not_called()


class TestResponseAndErrorBreadcrumbs:
    def test_response(self) -> None:
        client = FakeErrorTrackingClient()
        assert add_api_response_breadcrumb("GET", _URL, 404, 30.0, 18, client=client)
        data = client.breadcrumbs[0].data
        assert (data["status"], data["duration_ms"], data["response_size"]) == (404, 30.0, 18)
        assert "error" not in data

    def test_error_from_exception(self) -> None:
        client = FakeErrorTrackingClient()
        assert add_api_error_breadcrumb("PUT", _URL, TimeoutError("read timed out"), 5000, client=client)
        data = client.breadcrumbs[0].data
        assert data["error"] == "TimeoutError: read timed out"
        assert data["duration_ms"] == 5000
        assert "status" not in data

    def test_error_from_text(self) -> None:
        client = FakeErrorTrackingClient()
        add_api_error_breadcrumb("DELETE", _URL, "connection refused", client=client)
        assert client.breadcrumbs[0].data["error"] == "connection refused"
        assert "duration_ms" not in client.breadcrumbs[0].data
