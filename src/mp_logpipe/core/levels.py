"""Core – totally ordered log levels."""
from __future__ import annotations

import enum

_ALIASES: dict[str, str] = {
    "WARNING": "WARN",
    "ERR": "ERROR",
    "CRITICAL": "ERROR",
    "FATAL": "ERROR",
    "TRACE": "DEBUG",
    "LOG": "INFO",
}


class LogLevel(enum.IntEnum):
    """DEBUG < INFO < WARN < ERROR."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @classmethod
    def parse(cls, value: "LogLevel | str | int") -> "LogLevel":
        """Coerce a level name, alias or integer into a :class:`LogLevel`.

        Raises :class:`ValueError` for anything else.
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            name = _ALIASES.get(name, name)
            try:
                return cls[name]
            except KeyError:
                pass
        raise ValueError(f"Unknown log level: {value!r}")

    @property
    def label(self) -> str:
        """Lower-case name, used as a method name and breadcrumb level."""
        return self.name.lower()


__all__ = ["LogLevel"]
