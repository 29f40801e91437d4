"""Kernel time – the clock behind entry timestamps and session ids.

Everything that stamps an entry or a batch takes an optional :class:`Clock`;
tests pass a :class:`FrozenClock` to get stable output.
"""
from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Port: source of the current UTC time."""

    def now(self) -> datetime: ...
    def timestamp(self) -> float: ...


class SystemClock:
    """Wall clock, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def timestamp(self) -> float:
        return time.time()


class FrozenClock:
    """Clock pinned to *fixed* (default 2024-01-01 UTC) until advanced."""

    def __init__(self, fixed: datetime | None = None) -> None:
        self._fixed = fixed or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._fixed

    def timestamp(self) -> float:
        return self._fixed.timestamp()

    def advance(self, **kwargs: int | float) -> None:
        """Move forward by ``timedelta(**kwargs)``."""
        self._fixed += timedelta(**kwargs)


def epoch_millis(clock: Clock | None = None) -> int:
    """Milliseconds since the epoch on *clock* (default: the system clock)."""
    return int((clock or SystemClock()).timestamp() * 1000)


__all__ = ["Clock", "FrozenClock", "SystemClock", "epoch_millis"]
