"""Core – MultiSinkLogger, the fan-out orchestrator."""
from __future__ import annotations

import asyncio
import atexit
import concurrent.futures
import threading
import time
import weakref
from collections import Counter
from typing import Any, Coroutine, Iterable

from mp_logpipe.core.entry import LogEntry
from mp_logpipe.core.levels import LogLevel
from mp_logpipe.core.protocol import Sink, sink_name
from mp_logpipe.diagnostics import get_logger
from mp_logpipe.kernel.time import Clock, SystemClock

_log = get_logger(__name__)

# Seconds granted at interpreter exit and on close to the dispatch thread.
_EXIT_TIMEOUT = 5.0


class MultiSinkLogger:
    """Fans every accepted entry out to all registered sinks.

    Leveled calls return immediately.  Inside a running event loop the
    fan-out is scheduled as a task (tracked until :meth:`flush` awaits it);
    outside of any loop it is handed to a dispatch thread running the
    logger's own event loop, so sink timers keep firing and a slow sink never
    blocks the calling thread.  :meth:`wait_idle` lets synchronous code wait
    for that thread to catch up.  Each sink is written concurrently and in isolation:
    a sink that raises is counted in :attr:`failures`, reported on the
    diagnostics channel, and does not affect the others.

    Parameters
    ----------
    min_level:
        Calls below this level return before an entry is built.
    tags:
        Initial tag set; every entry carries a snapshot of the current tags.
    context:
        Global context merged into every entry (call-site keys win).
    user_id / session_id:
        Correlation identifiers.  ``session_id`` is fixed once set.
    clock:
        Source of entry timestamps.
    """

    def __init__(
        self,
        min_level: LogLevel | str | int = LogLevel.INFO,
        *,
        tags: Iterable[str] | None = None,
        context: dict[str, Any] | None = None,
        user_id: str | None = None,
        session_id: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._min_level = LogLevel.parse(min_level)
        self._sinks: list[Sink] = []
        self._context: dict[str, Any] = dict(context or {})
        self._tags: dict[str, None] = dict.fromkeys(tags or ())
        self._user_id = user_id
        self._session_id = session_id
        self._clock = clock or SystemClock()
        self._pending: set[asyncio.Task[None]] = set()
        self._failures: Counter[str] = Counter()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: threading.Thread | None = None
        self._loop_lock = threading.Lock()
        self._handoffs: set[concurrent.futures.Future[None]] = set()

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    @property
    def sinks(self) -> tuple[Sink, ...]:
        return tuple(self._sinks)

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    @property
    def failures(self) -> dict[str, int]:
        """Failed sink operations so far, keyed by sink name."""
        return dict(self._failures)

    # ------------------------------------------------------------------
    # Leveled calls
    # ------------------------------------------------------------------

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.INFO, message, context)

    def warn(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.WARN, message, context)

    warning = warn

    def error(
        self,
        message: str,
        context: dict[str, Any] | BaseException | None = None,
        error: BaseException | None = None,
    ) -> None:
        """Log at ERROR.  ``error(msg, exc)`` is accepted as ``error=exc``."""
        if isinstance(context, BaseException):
            context, error = None, context
        self.log(LogLevel.ERROR, message, context, error=error)

    def log(
        self,
        level: LogLevel | str | int,
        message: str,
        context: dict[str, Any] | None = None,
        *,
        error: BaseException | None = None,
        component: str | None = None,
        action: str | None = None,
        data: Any = None,
    ) -> None:
        level = LogLevel.parse(level)
        if level < self._min_level:
            return
        entry = LogEntry(
            level=level,
            message=message,
            timestamp=self._clock.now(),
            context={**self._context, **(context or {})},
            error=error,
            tags=tuple(self._tags),
            user_id=self._user_id,
            session_id=self._session_id,
            component=component,
            action=action,
            data=data,
        )
        self._dispatch(entry)

    def is_enabled_for(self, level: LogLevel | str | int) -> bool:
        return LogLevel.parse(level) >= self._min_level

    # ------------------------------------------------------------------
    # Mutable state
    # ------------------------------------------------------------------

    def set_context(self, context: dict[str, Any]) -> None:
        self._context.update(context)

    def clear_context(self) -> None:
        self._context.clear()

    def add_tag(self, tag: str) -> None:
        self._tags[tag] = None

    def remove_tags(self, *tags: str) -> None:
        for tag in tags:
            self._tags.pop(tag, None)

    def clear_tags(self) -> None:
        self._tags.clear()

    def set_user_id(self, user_id: str | None) -> None:
        self._user_id = user_id

    def set_session_id(self, session_id: str) -> None:
        """Assign the session id if none exists yet; later calls are ignored."""
        if self._session_id is None:
            self._session_id = session_id
        elif session_id != self._session_id:
            _log.warning("session_id_immutable", current=self._session_id)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _dispatch(self, entry: LogEntry) -> None:
        sinks = tuple(self._sinks)
        if not sinks:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._hand_off(self._fan_out(entry, sinks))
            return
        task = loop.create_task(self._fan_out(entry, sinks))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _dispatch_loop(self) -> asyncio.AbstractEventLoop:
        with self._loop_lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=loop.run_forever, name="mp-logpipe-dispatch", daemon=True
                )
                thread.start()
                self._loop, self._loop_thread = loop, thread
                atexit.register(_wait_at_exit, weakref.ref(self))
            return self._loop

    def _hand_off(self, coro: Coroutine[Any, Any, None]) -> None:
        future = asyncio.run_coroutine_threadsafe(coro, self._dispatch_loop())
        with self._loop_lock:
            self._handoffs.add(future)
        future.add_done_callback(self._forget_handoff)

    def _forget_handoff(self, future: concurrent.futures.Future[None]) -> None:
        with self._loop_lock:
            self._handoffs.discard(future)

    def _open_handoffs(self) -> list[concurrent.futures.Future[None]]:
        with self._loop_lock:
            return [future for future in self._handoffs if not future.done()]

    async def _fan_out(self, entry: LogEntry, sinks: tuple[Sink, ...]) -> None:
        await asyncio.gather(*(self._guarded(sink, "write", entry) for sink in sinks))

    async def _guarded(self, sink: Any, operation: str, *args: Any) -> None:
        method = getattr(sink, operation, None)
        if method is None:
            return
        try:
            await method(*args)
        except Exception as exc:  # noqa: BLE001
            name = sink_name(sink)
            self._failures[name] += 1
            _log.warning("sink_operation_failed", sink=name, operation=operation, error=repr(exc))

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every fan-out handed to the dispatch thread is done.

        For synchronous callers (scripts, tests, WSGI workers).  Returns
        ``False`` if *timeout* seconds elapse first.  Must not be called from
        the dispatch thread itself.
        """
        if threading.current_thread() is self._loop_thread:
            raise RuntimeError("wait_idle() called from the dispatch thread")
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            pending = self._open_handoffs()
            if not pending:
                return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            concurrent.futures.wait(pending, timeout=remaining)

    async def _drain_pending(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            pending = [task for task in self._pending if task.get_loop() is loop and not task.done()]
            handoffs = [asyncio.wrap_future(future) for future in self._open_handoffs()]
            if not pending and not handoffs:
                return
            await asyncio.gather(*pending, *handoffs, return_exceptions=True)

    async def _on_sinks(self, operation: str) -> None:
        async def run() -> None:
            await asyncio.gather(*(self._guarded(sink, operation) for sink in tuple(self._sinks)))

        # Sinks fed by the dispatch thread keep their timers on its loop.
        loop = self._loop
        if loop is None or loop is asyncio.get_running_loop():
            await run()
        else:
            await asyncio.wrap_future(asyncio.run_coroutine_threadsafe(run(), loop))

    async def _stop_dispatch_loop(self) -> None:
        with self._loop_lock:
            loop, thread = self._loop, self._loop_thread
            self._loop = self._loop_thread = None
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is threading.current_thread():
            return
        await asyncio.to_thread(thread.join, _EXIT_TIMEOUT)
        if not thread.is_alive():
            loop.close()

    async def flush(self) -> None:
        """Await scheduled fan-outs, then flush every sink concurrently."""
        await self._drain_pending()
        await self._on_sinks("flush")

    async def close(self) -> None:
        """Await scheduled fan-outs, close every sink, stop the dispatch thread."""
        await self._drain_pending()
        await self._on_sinks("close")
        await self._stop_dispatch_loop()


def _wait_at_exit(ref: "weakref.ReferenceType[MultiSinkLogger]") -> None:
    logger = ref()
    if logger is not None and logger._loop is not None:
        logger.wait_idle(_EXIT_TIMEOUT)


__all__ = ["MultiSinkLogger"]
