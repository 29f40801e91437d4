"""Core – the immutable LogEntry record.

A :class:`LogEntry` is created once by the orchestrator and shared, read-only,
by every sink.  Its JSON wire shape (``to_dict``) is what the file and network
sinks persist::

    {
        "level": "ERROR",
        "message": "checkout failed",
        "timestamp": "2024-01-01T00:00:00+00:00",
        "context": {...},
        "error": {"type": "ValueError", "message": "...", "stack": "..."},
        "tags": ["api"],
        "userId": "u-1",
        "sessionId": "server_...",
        "component": "checkout",
        "action": "submit",
        "data": {...}
    }

Absent optional fields are omitted from the dict.
"""
from __future__ import annotations

import dataclasses
import traceback
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Mapping

from mp_logpipe.core.levels import LogLevel


@dataclasses.dataclass(frozen=True)
class ErrorInfo:
    """Serialisable description of a captured exception."""

    type: str
    message: str
    stack: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        stack: str | None = None
        if exc.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(type=type(exc).__name__, message=str(exc), stack=stack)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "message": self.message}
        if self.stack is not None:
            payload["stack"] = self.stack
        return payload


def describe_error(error: BaseException | ErrorInfo | None) -> ErrorInfo | None:
    """Return the :class:`ErrorInfo` view of *error* (or ``None``)."""
    if error is None or isinstance(error, ErrorInfo):
        return error
    return ErrorInfo.from_exception(error)


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """A single log event.

    ``context`` is a read-only snapshot and ``tags`` a tuple, so later
    mutation of the logger's state never shows up in an entry already
    dispatched.
    """

    level: LogLevel
    message: str
    timestamp: datetime = dataclasses.field(default_factory=lambda: datetime.now(UTC))
    context: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    error: BaseException | ErrorInfo | None = None
    tags: tuple[str, ...] = ()
    user_id: str | None = None
    session_id: str | None = None
    component: str | None = None
    action: str | None = None
    data: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", LogLevel.parse(self.level))
        object.__setattr__(self, "context", _freeze(self.context))
        object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def error_info(self) -> ErrorInfo | None:
        return describe_error(self.error)

    def replace(self, **changes: Any) -> "LogEntry":
        """Return a copy of this entry with *changes* applied."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "level": self.level.name,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.context:
            payload["context"] = dict(self.context)
        info = self.error_info
        if info is not None:
            payload["error"] = info.to_dict()
        if self.tags:
            payload["tags"] = list(self.tags)
        if self.user_id is not None:
            payload["userId"] = self.user_id
        if self.session_id is not None:
            payload["sessionId"] = self.session_id
        if self.component is not None:
            payload["component"] = self.component
        if self.action is not None:
            payload["action"] = self.action
        if self.data is not None:
            payload["data"] = self.data
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LogEntry":
        """Rebuild an entry from its :meth:`to_dict` form."""
        error = payload.get("error")
        return cls(
            level=LogLevel.parse(payload["level"]),
            message=payload["message"],
            timestamp=datetime.fromisoformat(payload["timestamp"]),
            context=payload.get("context") or {},
            error=ErrorInfo(
                type=error.get("type", "Error"),
                message=error.get("message", ""),
                stack=error.get("stack"),
            ) if error else None,
            tags=tuple(payload.get("tags") or ()),
            user_id=payload.get("userId"),
            session_id=payload.get("sessionId"),
            component=payload.get("component"),
            action=payload.get("action"),
            data=payload.get("data"),
        )


__all__ = ["ErrorInfo", "LogEntry", "describe_error"]
