"""Testing fakes – FakeErrorTrackingClient."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class CapturedException:
    error: BaseException
    tags: dict[str, str] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)
    fingerprint: list[str] | None = None
    user: dict[str, Any] | None = None


@dataclass
class RecordedBreadcrumb:
    category: str
    message: str
    level: str
    data: dict[str, Any]
    timestamp: datetime


class FakeErrorTrackingClient:
    """In-memory :class:`~mp_logpipe.sinks.error_tracking.ErrorTrackingClient`.

    Set ``active = False`` to simulate an SDK that was never initialised.
    """

    def __init__(self, *, active: bool = True) -> None:
        self.active = active
        self.captured: list[CapturedException] = []
        self.breadcrumbs: list[RecordedBreadcrumb] = []
        self.flush_timeouts: list[float] = []

    def is_active(self) -> bool:
        return self.active

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
        self.captured.append(
            CapturedException(error, dict(tags or {}), dict(extras or {}), dict(contexts or {}), fingerprint, user)
        )
        return f"event-{len(self.captured)}"

    def add_breadcrumb(
        self,
        *,
        category: str,
        message: str,
        level: str,
        data: dict[str, Any],
        timestamp: datetime,
    ) -> None:
        self.breadcrumbs.append(RecordedBreadcrumb(category, message, level, data, timestamp))

    def flush(self, timeout: float) -> None:
        self.flush_timeouts.append(timeout)


__all__ = ["CapturedException", "FakeErrorTrackingClient", "RecordedBreadcrumb"]
