"""Factories – assemble loggers from resolved settings."""

from mp_logpipe.factories.client import create_client_logger
from mp_logpipe.factories.common import new_session_id
from mp_logpipe.factories.default import get_default_logger, set_default_logger
from mp_logpipe.factories.server import (
    create_function_logger,
    create_request_logger,
    create_server_logger,
)

__all__ = [
    "create_client_logger",
    "create_function_logger",
    "create_request_logger",
    "create_server_logger",
    "get_default_logger",
    "new_session_id",
    "set_default_logger",
]
