"""Kernel errors – the mp-logpipe exception hierarchy."""

from mp_logpipe.kernel.errors.base import BaseError
from mp_logpipe.kernel.errors.delivery import (
    InfrastructureError,
    LoggedError,
    SinkDeliveryError,
    TransportError,
)

__all__ = [
    "BaseError",
    "InfrastructureError",
    "LoggedError",
    "SinkDeliveryError",
    "TransportError",
]
