"""Sinks – error-tracking sinks (server and browser-session variants).

DEBUG, INFO and WARN entries become breadcrumbs; ERROR entries become
captured exceptions tagged with ``component``/``action`` and carrying the
redacted ``data``/``context`` plus the session and user ids.  The vendor
client sits behind :class:`ErrorTrackingClient`; :class:`SentryClient` is
the default adapter over ``sentry-sdk``.

:func:`init_error_tracking` initialises the SDK at most once per process and
always installs the redaction ``before_send`` hook.
"""
from __future__ import annotations

import abc
import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

import sentry_sdk

from mp_logpipe.core.entry import ErrorInfo, LogEntry
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.errors import LoggedError
from mp_logpipe.redaction.hooks import make_before_breadcrumb, make_before_send
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.sinks.base import BaseSink

if TYPE_CHECKING:
    from mp_logpipe.config.settings import SentrySettings
    from mp_logpipe.monitoring.monitor import LoggingMonitor

_log = get_logger(__name__)

_BREADCRUMB_LEVELS = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
}


class ErrorTrackingClient(Protocol):
    """Port: the subset of an error-tracking SDK the sinks rely on."""

    def is_active(self) -> bool: ...

    def capture_exception(
        self,
        error: BaseException,
        *,
        tags: dict[str, str] | None = None,
        extras: dict[str, Any] | None = None,
        contexts: dict[str, dict[str, Any]] | None = None,
        fingerprint: list[str] | None = None,
        user: dict[str, Any] | None = None,
    ) -> str | None: ...

    def add_breadcrumb(
        self,
        *,
        category: str,
        message: str,
        level: str,
        data: dict[str, Any],
        timestamp: datetime,
    ) -> None: ...

    def flush(self, timeout: float) -> None: ...


class SentryClient:
    """:class:`ErrorTrackingClient` backed by the global ``sentry_sdk`` hub."""

    def is_active(self) -> bool:
        return sentry_sdk.is_initialized()

    def capture_exception(
        self,
        error: BaseException,
        *,
        tags: dict[str, str] | None = None,
        extras: dict[str, Any] | None = None,
        contexts: dict[str, dict[str, Any]] | None = None,
        fingerprint: list[str] | None = None,
        user: dict[str, Any] | None = None,
    ) -> str | None:
        return sentry_sdk.capture_exception(
            error,
            tags=tags,
            extras=extras,
            contexts=contexts,
            fingerprint=fingerprint,
            user=user,
        )

    def add_breadcrumb(
        self,
        *,
        category: str,
        message: str,
        level: str,
        data: dict[str, Any],
        timestamp: datetime,
    ) -> None:
        sentry_sdk.add_breadcrumb(
            category=category, message=message, level=level, data=data, timestamp=timestamp
        )

    def flush(self, timeout: float) -> None:
        sentry_sdk.flush(timeout=timeout)


# ---------------------------------------------------------------------------
# One-time SDK initialisation
# ---------------------------------------------------------------------------

_initialized = False


def is_error_tracking_initialized() -> bool:
    return _initialized


def init_error_tracking(
    settings: "SentrySettings",
    redactor: Redactor | None = None,
    **options: Any,
) -> bool:
    """Initialise ``sentry-sdk`` once per process.

    Returns ``True`` when the SDK is (already) initialised and ``False`` when
    it is disabled, has no DSN, or failed to start.  Vendor-side PII
    collection is always off and every event passes through the redaction
    hook.
    """
    global _initialized
    if _initialized:
        return True
    if not settings.enabled or not settings.dsn:
        _log.debug("error_tracking_disabled", has_dsn=bool(settings.dsn))
        return False
    engine = redactor or Redactor()
    try:
        sentry_sdk.init(
            dsn=settings.dsn,
            environment=settings.environment,
            release=settings.release,
            traces_sample_rate=settings.traces_sample_rate,
            send_default_pii=False,
            before_send=make_before_send(engine),
            before_breadcrumb=make_before_breadcrumb(engine),
            **options,
        )
    except Exception as exc:  # noqa: BLE001
        _log.error("error_tracking_init_failed", error=repr(exc))
        return False
    _initialized = True
    _log.info("error_tracking_initialized", environment=settings.environment)
    return True


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class ErrorTrackingSink(BaseSink):
    """Shared mapping of entries onto breadcrumbs and captured exceptions.

    Parameters
    ----------
    client:
        Error-tracking client; defaults to :class:`SentryClient`.
    redactor:
        Applied to ``data``, ``context`` and the breadcrumb message.
    monitor:
        When given, every captured exception is counted on it.
    flush_timeout / close_timeout:
        Seconds granted to the client on :meth:`flush` and :meth:`close`.
    """

    flush_timeout: float = 2.0
    close_timeout: float = 5.0

    def __init__(
        self,
        client: ErrorTrackingClient | None = None,
        *,
        redactor: Redactor | None = None,
        monitor: "LoggingMonitor | None" = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._client = client or SentryClient()
        self._redactor = redactor or Redactor()
        self._monitor = monitor
        self.enabled = True
        self.captured = 0
        self.breadcrumbs = 0

    def _payload(self, entry: LogEntry) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "component": entry.component,
            "action": entry.action,
            "timestamp": entry.timestamp.isoformat(),
        }
        if entry.data is not None:
            payload["data"] = self._redactor.redact(entry.data)
        if entry.context:
            payload["context"] = self._redactor.redact(dict(entry.context))
        if entry.session_id:
            payload["sessionId"] = entry.session_id
        return payload

    def _tags(self, entry: LogEntry) -> dict[str, str]:
        tags = {tag: "true" for tag in entry.tags}
        if entry.component:
            tags["component"] = entry.component
        if entry.action:
            tags["action"] = entry.action
        if entry.session_id:
            tags["session_id"] = entry.session_id
        return tags

    @staticmethod
    def _user(entry: LogEntry) -> dict[str, Any] | None:
        if not entry.user_id and not entry.session_id:
            return None
        user: dict[str, Any] = {"id": entry.user_id}
        if entry.session_id:
            user["session_id"] = entry.session_id
        return user

    @staticmethod
    def exception_for(entry: LogEntry) -> BaseException:
        """The exception to report: the attached one, or a synthetic one."""
        if isinstance(entry.error, BaseException):
            return entry.error
        if isinstance(entry.error, ErrorInfo):
            return LoggedError(f"{entry.error.type}: {entry.error.message}")
        fallback = f"Error in {entry.component}:{entry.action}"
        return LoggedError(entry.message or fallback)

    async def _emit(self, entry: LogEntry) -> None:
        if not self.enabled or not self._client.is_active():
            return
        if entry.level >= LogLevel.ERROR:
            self._capture(entry, self.exception_for(entry))
            self.captured += 1
            if self._monitor is not None:
                self._monitor.record_error_tracking_event()
        else:
            message = self._redactor.redact_text(entry.message)
            self._client.add_breadcrumb(
                category=entry.component or "log",
                message=f"{entry.action}: {message}" if entry.action else message,
                level=_BREADCRUMB_LEVELS[entry.level],
                data=self._payload(entry),
                timestamp=entry.timestamp,
            )
            self.breadcrumbs += 1

    @abc.abstractmethod
    def _capture(self, entry: LogEntry, error: BaseException) -> None:
        """Report *error* for an ERROR entry."""

    async def flush(self) -> None:
        if self.enabled and self._client.is_active():
            await asyncio.to_thread(self._client.flush, self.flush_timeout)

    async def close(self) -> None:
        if self.enabled and self._client.is_active():
            await asyncio.to_thread(self._client.flush, self.close_timeout)
        self.enabled = False


class ServerErrorTrackingSink(ErrorTrackingSink):
    """Server variant: payload as ``extra``, grouped by component/action/message."""

    def _capture(self, entry: LogEntry, error: BaseException) -> None:
        self._client.capture_exception(
            error,
            tags=self._tags(entry),
            extras=self._payload(entry),
            fingerprint=[
                entry.component or "default",
                entry.action or "default",
                self._redactor.redact_text(str(error)),
            ],
            user=self._user(entry),
        )


class ClientErrorTrackingSink(ErrorTrackingSink):
    """Browser-session variant: payload as a ``logEntry`` context."""

    close_timeout = 2.0

    def _capture(self, entry: LogEntry, error: BaseException) -> None:
        self._client.capture_exception(
            error,
            tags=self._tags(entry),
            contexts={"logEntry": self._payload(entry)},
            user=self._user(entry),
        )


__all__ = [
    "ClientErrorTrackingSink",
    "ErrorTrackingClient",
    "ErrorTrackingSink",
    "SentryClient",
    "ServerErrorTrackingSink",
    "init_error_tracking",
    "is_error_tracking_initialized",
]
