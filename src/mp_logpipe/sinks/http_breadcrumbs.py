"""Sinks – ``http`` breadcrumbs for outgoing API calls.

Each helper records one breadcrumb on an :class:`ErrorTrackingClient` so a
later captured exception shows the calls that preceded it.  The URL is
reduced by :meth:`Redactor.redact_url` before it is recorded.

Breadcrumbs are best effort: when the SDK is not initialised, or the client
fails, nothing is recorded and the helper returns ``False``.
"""
from __future__ import annotations

from typing import Any

from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.time import Clock, SystemClock
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.sinks.error_tracking import ErrorTrackingClient, SentryClient

_log = get_logger(__name__)


def add_api_request_breadcrumb(
    method: str,
    url: str,
    *,
    status: int | None = None,
    duration_ms: float | None = None,
    error: str | None = None,
    size: int | None = None,
    client: ErrorTrackingClient | None = None,
    redactor: Redactor | None = None,
    clock: Clock | None = None,
) -> bool:
    """Record an ``http`` breadcrumb for *method* *url*.

    Parameters
    ----------
    status:
        Response status code, if a response arrived.
    duration_ms:
        Round-trip time in milliseconds.
    error:
        Failure description for calls that did not complete.
    size:
        Response body size in bytes; recorded as ``response_size``.
    client:
        Defaults to the global Sentry SDK.

    Returns ``True`` when the breadcrumb was handed to the client.
    """
    client = client or SentryClient()
    try:
        if not client.is_active():
            return False
        safe_url = (redactor or Redactor()).redact_url(url)
        data: dict[str, Any] = {"method": method, "url": safe_url}
        if status is not None:
            data["status"] = status
        if duration_ms is not None:
            data["duration_ms"] = duration_ms
        if error is not None:
            data["error"] = error
        if size is not None:
            data["response_size"] = size
        client.add_breadcrumb(
            category="http",
            message=f"{method} {safe_url}",
            level="info",
            data=data,
            timestamp=(clock or SystemClock()).now(),
        )
    except Exception as exc:  # noqa: BLE001
        _log.debug("http_breadcrumb_failed", method=method, error=repr(exc))
        return False
    return True


def add_api_response_breadcrumb(
    method: str,
    url: str,
    status: int,
    duration_ms: float,
    size: int | None = None,
    **kwargs: Any,
) -> bool:
    """Breadcrumb for a completed call."""
    return add_api_request_breadcrumb(method, url, status=status, duration_ms=duration_ms, size=size, **kwargs)


def add_api_error_breadcrumb(
    method: str,
    url: str,
    error: BaseException | str,
    duration_ms: float | None = None,
    **kwargs: Any,
) -> bool:
    """Breadcrumb for a call that failed before a response arrived."""
    message = str(error) if isinstance(error, str) else f"{type(error).__name__}: {error}"
    return add_api_request_breadcrumb(method, url, error=message, duration_ms=duration_ms, **kwargs)


__all__ = ["add_api_error_breadcrumb", "add_api_request_breadcrumb", "add_api_response_breadcrumb"]
