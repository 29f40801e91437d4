"""Core – Logger and Sink contracts."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from mp_logpipe.core.entry import LogEntry


@runtime_checkable
class Sink(Protocol):
    """Destination for log entries.

    Only ``write`` is required; ``flush`` and ``close`` are looked up with
    ``getattr`` by the orchestrator and skipped when absent.
    """

    async def write(self, entry: LogEntry) -> None: ...


class Logger(Protocol):
    """Caller-facing logging surface.

    Leveled methods are fire-and-forget and never raise.
    """

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None: ...
    def info(self, message: str, context: dict[str, Any] | None = None) -> None: ...
    def warn(self, message: str, context: dict[str, Any] | None = None) -> None: ...
    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None: ...

    def set_context(self, context: dict[str, Any]) -> None: ...
    def clear_context(self) -> None: ...
    def add_tag(self, tag: str) -> None: ...
    def remove_tags(self, *tags: str) -> None: ...
    def clear_tags(self) -> None: ...
    def set_user_id(self, user_id: str | None) -> None: ...
    def set_session_id(self, session_id: str) -> None: ...

    async def flush(self) -> None: ...
    async def close(self) -> None: ...


def sink_name(sink: Any) -> str:
    """Stable label for a sink in counters and diagnostics."""
    return getattr(sink, "name", None) or type(sink).__name__


__all__ = ["Logger", "Sink", "sink_name"]
