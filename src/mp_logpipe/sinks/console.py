"""Sinks – ConsoleSink: one human-readable line per entry."""
from __future__ import annotations

import json
import sys
from typing import IO, Any, Mapping

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.sinks.base import BaseSink


def safe_json(value: Any) -> str:
    """Serialise *value*; unserialisable members fall back to ``str()``."""
    try:
        return json.dumps(value, ensure_ascii=False, default=_safe_str)
    except (TypeError, ValueError):
        pass
    if isinstance(value, Mapping):
        parts = []
        for key, item in value.items():
            try:
                parts.append(f"{json.dumps(str(key))}: {json.dumps(item, default=_safe_str)}")
            except (TypeError, ValueError):
                parts.append(f"{json.dumps(str(key))}: {json.dumps(_safe_str(item))}")
        return "{" + ", ".join(parts) + "}"
    return json.dumps(_safe_str(value))


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:  # noqa: BLE001
        return f"<{type(value).__name__}>"


class ConsoleSink(BaseSink):
    """Writes formatted lines to stdout/stderr.

    ``[ts] [LEVEL] [#tag ...] [user:u] [session:12345678] message context={...} error=Type: msg``

    WARN and ERROR go to stderr unless an explicit *stream* is given.  ANSI
    colours are only used when the target stream is a TTY.  Entries are
    redacted unless ``redact=False``.
    """

    COLORS = {
        LogLevel.DEBUG: "\033[90m",  # gray
        LogLevel.INFO: "\033[34m",   # blue
        LogLevel.WARN: "\033[33m",   # yellow
        LogLevel.ERROR: "\033[31m",  # red
    }
    GRAY = "\033[90m"
    CYAN = "\033[36m"
    BLUE = "\033[34m"
    RESET = "\033[0m"

    def __init__(
        self,
        *,
        stream: IO[str] | None = None,
        colorize: bool = True,
        include_timestamp: bool = True,
        split_stderr: bool = True,
        redact: bool = True,
        redactor: Redactor | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._stream = stream
        self._colorize = colorize
        self._include_timestamp = include_timestamp
        self._split_stderr = split_stderr
        self._redactor = (redactor or Redactor()) if redact else None

    def _get_stream(self, level: LogLevel) -> IO[str]:
        if self._stream is not None:
            return self._stream
        if self._split_stderr and level >= LogLevel.WARN:
            return sys.stderr
        return sys.stdout

    def _paint(self, text: str, color: str, enabled: bool) -> str:
        return f"{color}{text}{self.RESET}" if enabled else text

    def format(self, entry: LogEntry, *, color: bool = False) -> str:
        parts: list[str] = []
        if self._include_timestamp:
            parts.append(self._paint(f"[{entry.timestamp.isoformat()}]", self.GRAY, color))
        parts.append(self._paint(f"[{entry.level.name:<5}]", self.COLORS[entry.level], color))
        if entry.tags:
            tags = " ".join(f"#{tag}" for tag in entry.tags)
            parts.append(self._paint(f"[{tags}]", self.CYAN, color))
        if entry.user_id:
            parts.append(self._paint(f"[user:{entry.user_id}]", self.BLUE, color))
        if entry.session_id:
            parts.append(self._paint(f"[session:{entry.session_id[:8]}]", self.BLUE, color))
        parts.append(entry.message)
        if entry.context:
            parts.append(f"context={safe_json(dict(entry.context))}")
        if entry.data is not None:
            parts.append(f"data={safe_json(entry.data)}")
        info = entry.error_info
        if info is not None:
            parts.append(f"error={info.type}: {info.message}")
        return " ".join(parts)

    async def _emit(self, entry: LogEntry) -> None:
        if self._redactor is not None:
            entry = self._redactor.redact_entry(entry)
        stream = self._get_stream(entry.level)
        isatty = getattr(stream, "isatty", None)
        color = self._colorize and callable(isatty) and bool(isatty())
        stream.write(self.format(entry, color=color) + "\n")
        stream.flush()


__all__ = ["ConsoleSink", "safe_json"]
