"""Sinks – delivery targets for log entries."""

from mp_logpipe.sinks.base import BaseSink
from mp_logpipe.sinks.client_file import ClientFileSink
from mp_logpipe.sinks.console import ConsoleSink, safe_json
from mp_logpipe.sinks.error_tracking import (
    ClientErrorTrackingSink,
    ErrorTrackingClient,
    ErrorTrackingSink,
    SentryClient,
    ServerErrorTrackingSink,
    init_error_tracking,
    is_error_tracking_initialized,
)
from mp_logpipe.sinks.http_breadcrumbs import (
    add_api_error_breadcrumb,
    add_api_request_breadcrumb,
    add_api_response_breadcrumb,
)
from mp_logpipe.sinks.memory import InMemorySink
from mp_logpipe.sinks.server_file import ServerFileSink
from mp_logpipe.sinks.transport import (
    BatchTransport,
    BeaconTransport,
    HttpxBatchTransport,
    HttpxBeaconTransport,
)

__all__ = [
    "BaseSink",
    "BatchTransport",
    "BeaconTransport",
    "ClientErrorTrackingSink",
    "ClientFileSink",
    "ConsoleSink",
    "ErrorTrackingClient",
    "ErrorTrackingSink",
    "HttpxBatchTransport",
    "HttpxBeaconTransport",
    "InMemorySink",
    "SentryClient",
    "ServerErrorTrackingSink",
    "ServerFileSink",
    "add_api_error_breadcrumb",
    "add_api_request_breadcrumb",
    "add_api_response_breadcrumb",
    "init_error_tracking",
    "is_error_tracking_initialized",
    "safe_json",
]
