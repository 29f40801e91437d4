"""Testing fakes – in-memory doubles for sinks, transports and SDK clients."""
from mp_logpipe.kernel.time import FrozenClock
from mp_logpipe.testing.fakes.error_tracking import (
    CapturedException,
    FakeErrorTrackingClient,
    RecordedBreadcrumb,
)
from mp_logpipe.testing.fakes.sinks import FailingSink, RecordingSink
from mp_logpipe.testing.fakes.transports import FakeBatchTransport, FakeBeaconTransport

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
