"""Sinks – InMemorySink for self-tests and unit tests."""
from __future__ import annotations

import json
from typing import Any

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.sinks.base import BaseSink


class InMemorySink(BaseSink):
    """Keeps every accepted entry and its rendered JSON line."""

    def __init__(self, *, redact: bool = True, redactor: Redactor | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._redactor = (redactor or Redactor()) if redact else None
        self.entries: list[LogEntry] = []
        self.rendered: list[str] = []
        self.closed = False

    async def _emit(self, entry: LogEntry) -> None:
        if self._redactor is not None:
            entry = self._redactor.redact_entry(entry)
        self.entries.append(entry)
        self.rendered.append(json.dumps(entry.to_dict(), default=str))

    def output(self) -> str:
        return "\n".join(self.rendered)

    def clear(self) -> None:
        self.entries.clear()
        self.rendered.clear()

    async def close(self) -> None:
        self.closed = True


__all__ = ["InMemorySink"]
