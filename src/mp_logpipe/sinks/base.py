"""Sinks – shared base class.

:class:`BaseSink` owns the two things every sink does the same way: the
per-sink level/tag filter and the failure boundary around ``write``.
Subclasses implement :meth:`BaseSink._emit` and may raise freely from it.
"""
from __future__ import annotations

import abc
from typing import Iterable

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.diagnostics import get_logger

_log = get_logger(__name__)


class BaseSink(abc.ABC):
    """Filtered, failure-isolated sink.

    Parameters
    ----------
    min_level:
        Entries below this level are skipped by this sink only.
    tags:
        When given, an entry must carry at least one of these tags.
    name:
        Label used in counters and diagnostics; defaults to the class name.
    """

    def __init__(
        self,
        *,
        min_level: LogLevel | str | int | None = None,
        tags: Iterable[str] | None = None,
        name: str | None = None,
    ) -> None:
        self.min_level = LogLevel.parse(min_level) if min_level is not None else None
        self.tags = frozenset(tags or ())
        self.name = name or type(self).__name__
        self.failures = 0

    def accepts(self, entry: LogEntry) -> bool:
        if self.min_level is not None and entry.level < self.min_level:
            return False
        if self.tags and not self.tags.intersection(entry.tags):
            return False
        return True

    async def write(self, entry: LogEntry) -> None:
        if not self.accepts(entry):
            return
        try:
            await self._emit(entry)
        except Exception as exc:  # noqa: BLE001
            self.failures += 1
            _log.warning("sink_write_failed", sink=self.name, error=repr(exc))

    @abc.abstractmethod
    async def _emit(self, entry: LogEntry) -> None:
        """Deliver one accepted entry."""

    async def flush(self) -> None:
        return None

    async def close(self) -> None:
        return None


__all__ = ["BaseSink"]
