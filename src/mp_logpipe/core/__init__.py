"""Core – log entries, levels, contracts and the fan-out orchestrator."""

from mp_logpipe.core.entry import ErrorInfo, LogEntry, describe_error
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.protocol import Logger, Sink, sink_name
from mp_logpipe.core.logger import MultiSinkLogger

__all__ = [
    "ErrorInfo",
    "LogEntry",
    "LogLevel",
    "Logger",
    "MultiSinkLogger",
    "Sink",
    "describe_error",
    "sink_name",
]
