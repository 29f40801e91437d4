"""Resilience – retry policies for network-backed sinks."""

from mp_logpipe.resilience.retry import BackoffRetryPolicy

__all__ = ["BackoffRetryPolicy"]
