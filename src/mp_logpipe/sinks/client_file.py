"""Sinks – ClientFileSink: batched delivery to an HTTP ingestion endpoint.

Entries are redacted as they are buffered.  A batch is posted when the
buffer reaches ``batch_size``, when the flush timer fires, or on an explicit
:meth:`ClientFileSink.flush`, whichever comes first.  The request body is::

    {"filename": "client.log",
     "data": {"sessionId": "...", "timestamp": "...", "entries": [...]}}

A batch that still fails after ``max_retries`` attempts is discarded and
counted in :attr:`ClientFileSink.dropped_batches`.
"""
from __future__ import annotations

import asyncio
import atexit
from typing import Any, Awaitable, Callable

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.errors import TransportError
from mp_logpipe.kernel.time import Clock, SystemClock
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.resilience.retry import BackoffRetryPolicy
from mp_logpipe.sinks.base import BaseSink
from mp_logpipe.sinks.transport import (
    BatchTransport,
    BeaconTransport,
    HttpxBatchTransport,
    HttpxBeaconTransport,
    encode_payload,
)

_log = get_logger(__name__)


class ClientFileSink(BaseSink):
    """Buffering network sink.

    Parameters
    ----------
    endpoint:
        Ingestion URL accepting ``{filename, data}``.
    filename:
        Name the endpoint stores the batch under.
    batch_size:
        Buffer size that triggers an immediate flush.
    flush_interval:
        Seconds after the first buffered entry before a timed flush.
    max_retries:
        Delivery attempts per batch before it is dropped.
    retry_delay:
        Initial backoff in seconds; doubles on every retry.
    session_id:
        Session reported in the batch envelope.
    transport / beacon:
        Async batch transport and unload-time beacon.
    register_unload:
        Register :meth:`on_unload` with :mod:`atexit`.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        filename: str = "client.log",
        batch_size: int = 10,
        flush_interval: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session_id: str | None = None,
        transport: BatchTransport | None = None,
        beacon: BeaconTransport | None = None,
        redactor: Redactor | None = None,
        clock: Clock | None = None,
        register_unload: bool = False,
        retry_sleep: Callable[[float], Awaitable[Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.endpoint = endpoint
        self.filename = filename
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.session_id = session_id
        self._transport = transport or HttpxBatchTransport()
        self._beacon = beacon or HttpxBeaconTransport()
        self._redactor = redactor or Redactor()
        self._clock = clock or SystemClock()
        self._retry = BackoffRetryPolicy(
            max_attempts=max_retries,
            base_delay=retry_delay,
            retry_on=(TransportError,),
            sleep=retry_sleep,
        )
        self._buffer: list[LogEntry] = []
        self._timer: asyncio.TimerHandle | None = None
        self._timer_loop: asyncio.AbstractEventLoop | None = None
        self._timed_flushes: set[asyncio.Task[None]] = set()
        self._closed = False
        self.sent_batches = 0
        self.dropped_batches = 0
        self.dropped_entries = 0
        if register_unload:
            atexit.register(self.on_unload)

    @property
    def pending(self) -> int:
        """Entries buffered and not yet handed to the transport."""
        return len(self._buffer)

    async def _emit(self, entry: LogEntry) -> None:
        if self._closed:
            return
        self._buffer.append(self._redactor.redact_entry(entry))
        if len(self._buffer) >= self.batch_size:
            await self.flush()
        else:
            self._arm_timer()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm_timer(self) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None and self._timer_loop is loop and not self._timer.cancelled():
            return
        self._timer = loop.call_later(self.flush_interval, self._on_timer)
        self._timer_loop = loop

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_loop = None

    def _on_timer(self) -> None:
        self._timer = None
        if not self._buffer or self._timer_loop is None:
            return
        task = self._timer_loop.create_task(self.flush())
        self._timed_flushes.add(task)
        task.add_done_callback(self._timed_flushes.discard)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def build_payload(self, entries: list[LogEntry]) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "data": {
                "sessionId": self.session_id,
                "timestamp": self._clock.now().isoformat(),
                "entries": [entry.to_dict() for entry in entries],
            },
        }

    async def flush(self) -> None:
        self._cancel_timer()
        if not self._buffer:
            return
        batch, self._buffer = self._buffer, []
        payload = self.build_payload(batch)
        try:
            await self._retry.execute_async(lambda: self._transport.send(self.endpoint, payload))
        except TransportError as exc:
            self.dropped_batches += 1
            self.dropped_entries += len(batch)
            _log.warning(
                "batch_dropped",
                sink=self.name,
                entries=len(batch),
                attempts=self._retry.last_attempts,
                error=exc.message,
            )
            return
        self.sent_batches += 1

    async def close(self) -> None:
        await self.flush()
        self._closed = True

    def on_unload(self) -> bool:
        """Hand remaining entries to the beacon transport; never raises."""
        self._cancel_timer()
        if not self._buffer:
            return True
        batch, self._buffer = self._buffer, []
        try:
            delivered = self._beacon.send(self.endpoint, encode_payload(self.build_payload(batch)))
        except Exception as exc:  # noqa: BLE001
            _log.warning("beacon_failed", sink=self.name, error=repr(exc))
            delivered = False
        if not delivered:
            self.dropped_batches += 1
            self.dropped_entries += len(batch)
        return delivered


__all__ = ["ClientFileSink"]
