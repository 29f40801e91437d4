"""Infrastructure errors raised inside sinks and transports.

None of these escape a caller-facing logging method: sinks raise them up to
their own ``write`` boundary, where they are counted and reported on the
diagnostics channel.
"""

from __future__ import annotations

from typing import Any

from mp_logpipe.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """I/O failure that is not a caller mistake."""

    default_code = "infrastructure_error"


class SinkDeliveryError(InfrastructureError):
    """A sink could not deliver an entry to its destination."""

    default_code = "sink_delivery_error"

    def __init__(self, sink: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message or f"Sink '{sink}' failed to deliver", **kwargs)
        self.sink = sink


class TransportError(InfrastructureError):
    """The HTTP ingestion endpoint rejected or did not answer a batch."""

    default_code = "transport_error"

    def __init__(
        self,
        endpoint: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Delivery to '{endpoint}' failed", **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code


class LoggedError(BaseError):
    """Synthetic exception reported for ERROR entries logged without one."""

    default_code = "logged_error"


__all__ = ["InfrastructureError", "LoggedError", "SinkDeliveryError", "TransportError"]
