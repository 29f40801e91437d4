"""Testing – fakes for exercising loggers and sinks without I/O."""
from mp_logpipe.testing.fakes import (
    CapturedException,
    FailingSink,
    FakeBatchTransport,
    FakeBeaconTransport,
    FakeErrorTrackingClient,
    FrozenClock,
    RecordedBreadcrumb,
    RecordingSink,
)

__all__ = [
    "CapturedException",
    "FailingSink",
    "FakeBatchTransport",
    "FakeBeaconTransport",
    "FakeErrorTrackingClient",
    "FrozenClock",
    "RecordedBreadcrumb",
    "RecordingSink",
]
