"""Sinks – ServerFileSink: rotating newline-delimited JSON files.

``write`` only serialises the (redacted) entry and appends the line to a
bounded in-memory queue; a daemon writer thread performs all disk I/O.
When the queue is full the *oldest* queued line is dropped and counted in
:attr:`ServerFileSink.dropped`.

Rotation is size based: ``server.log`` becomes ``server.log.1``, which
becomes ``server.log.2`` and so on; at most ``max_files`` files exist and the
oldest is deleted.  Disk errors are counted, reported and never retried.
"""
from __future__ import annotations

import asyncio
import json
import os
import threading
from collections import deque
from pathlib import Path
from typing import IO, Any

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.errors import SinkDeliveryError
from mp_logpipe.redaction.redactor import Redactor
from mp_logpipe.sinks.base import BaseSink

_log = get_logger(__name__)


class ServerFileSink(BaseSink):
    """Append-only NDJSON file sink with size-based rotation.

    Parameters
    ----------
    file_path:
        Active log file; parent directories are created.
    max_file_size:
        Rotate before a line would push the active file past this many bytes.
    max_files:
        Total number of files kept, the active one included.
    queue_size:
        Lines buffered for the writer thread before the oldest is dropped.
    flush_timeout:
        Seconds :meth:`flush` waits for the writer to go idle.
    """

    def __init__(
        self,
        file_path: str | os.PathLike[str],
        *,
        max_file_size: int = 10 * 1024 * 1024,
        max_files: int = 5,
        queue_size: int = 10_000,
        flush_timeout: float = 5.0,
        redactor: Redactor | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        if max_files < 1:
            raise ValueError("max_files must be >= 1")
        self.path = Path(file_path)
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.queue_size = queue_size
        self.flush_timeout = flush_timeout
        self._redactor = redactor or Redactor()
        self._queue: deque[bytes] = deque()
        self._cond = threading.Condition()
        self._busy = False
        self._stopping = False
        self._closed = False
        self._thread: threading.Thread | None = None
        self._fh: IO[bytes] | None = None
        self._size = 0
        self.dropped = 0
        self.written = 0
        self.write_errors = 0
        self.rotations = 0

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def format_line(self, entry: LogEntry) -> bytes:
        record = self._redactor.redact_entry(entry).to_dict()
        return (json.dumps(record, ensure_ascii=False, default=str) + "\n").encode("utf-8")

    async def _emit(self, entry: LogEntry) -> None:
        self.enqueue(self.format_line(entry))

    def enqueue(self, line: bytes) -> None:
        with self._cond:
            if self._closed:
                raise SinkDeliveryError(self.name, "sink is closed")
            if len(self._queue) >= self.queue_size:
                self._queue.popleft()
                self.dropped += 1
            self._queue.append(line)
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name=f"{self.name}-writer", daemon=True
                )
                self._thread.start()
            self._cond.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every queued line has been handled."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._queue and not self._busy, timeout)

    async def flush(self) -> None:
        if not await asyncio.to_thread(self.wait_idle, self.flush_timeout):
            _log.warning("flush_timeout", sink=self.name, queued=len(self._queue))

    async def close(self) -> None:
        with self._cond:
            self._closed = True
            self._stopping = True
            self._cond.notify_all()
            thread = self._thread
        if thread is not None:
            await asyncio.to_thread(thread.join, self.flush_timeout)
        if thread is None or not thread.is_alive():
            self._close_file()

    # ------------------------------------------------------------------
    # Writer thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._queue and not self._stopping:
                    self._cond.wait()
                if not self._queue:
                    return
                lines = list(self._queue)
                self._queue.clear()
                self._busy = True
            try:
                self._write_lines(lines)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def _write_lines(self, lines: list[bytes]) -> None:
        for index, line in enumerate(lines):
            try:
                fh = self._open()
                if self._size > 0 and self._size + len(line) > self.max_file_size:
                    self._rotate()
                    fh = self._open()
                fh.write(line)
                self._size += len(line)
                self.written += 1
            except OSError as exc:
                self.write_errors += len(lines) - index
                _log.warning("file_write_failed", sink=self.name, path=str(self.path), error=repr(exc))
                self._close_file()
                return
        if self._fh is not None:
            self._fh.flush()

    def _open(self) -> IO[bytes]:
        if self._fh is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.path, "ab")  # noqa: SIM115
            self._size = self._fh.tell()
        return self._fh

    def _close_file(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError as exc:
                _log.warning("file_close_failed", sink=self.name, error=repr(exc))
            self._fh = None

    def rotated_path(self, index: int) -> Path:
        return self.path if index == 0 else self.path.with_name(f"{self.path.name}.{index}")

    def _rotate(self) -> None:
        self._close_file()
        oldest = self.rotated_path(self.max_files - 1)
        if oldest.exists():
            oldest.unlink()
        for index in range(self.max_files - 2, -1, -1):
            source = self.rotated_path(index)
            if source.exists():
                os.replace(source, self.rotated_path(index + 1))
        self._size = 0
        self.rotations += 1


__all__ = ["ServerFileSink"]
