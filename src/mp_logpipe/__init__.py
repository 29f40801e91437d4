"""
mp_logpipe – multi-sink logging pipeline.

Import path convention::

    from mp_logpipe.core import LogLevel, MultiSinkLogger
    from mp_logpipe.sinks import ConsoleSink, ServerFileSink
    from mp_logpipe.factories import create_server_logger
    from mp_logpipe.adapters import create_legacy_logger
"""

from mp_logpipe.core import LogEntry, LogLevel, MultiSinkLogger
from mp_logpipe.factories import (
    create_client_logger,
    create_server_logger,
    get_default_logger,
)

__version__ = "0.1.0"
__all__ = [
    "LogEntry",
    "LogLevel",
    "MultiSinkLogger",
    "__version__",
    "create_client_logger",
    "create_server_logger",
    "get_default_logger",
]
