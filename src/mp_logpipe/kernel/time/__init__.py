"""Kernel time – clocks."""

from mp_logpipe.kernel.time.clock import Clock, FrozenClock, SystemClock, epoch_millis

__all__ = ["Clock", "FrozenClock", "SystemClock", "epoch_millis"]
