"""Unit tests for MultiSinkLogger."""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import UTC, datetime

from mp_logpipe.core import LogEntry, LogLevel, MultiSinkLogger, Sink
from mp_logpipe.sinks import ClientFileSink
from mp_logpipe.testing import FailingSink, FakeBatchTransport, FrozenClock, RecordingSink


def _logger(*sinks: object, **kwargs: object) -> MultiSinkLogger:
    logger = MultiSinkLogger(**kwargs)  # type: ignore[arg-type]
    for sink in sinks:
        logger.add_sink(sink)  # type: ignore[arg-type]
    return logger


class EventGatedSink:
    """Blocks every write on an ``asyncio.Event`` of the caller's loop."""

    name = "event-gated"

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.entries: list[LogEntry] = []

    async def write(self, entry: LogEntry) -> None:
        await self.release.wait()
        self.entries.append(entry)


class ThreadGatedSink:
    """Blocks every write until a ``threading.Event`` is set."""

    name = "thread-gated"

    def __init__(self) -> None:
        self.release = threading.Event()
        self.entries: list[LogEntry] = []

    async def write(self, entry: LogEntry) -> None:
        await asyncio.to_thread(self.release.wait, 5.0)
        self.entries.append(entry)


class TestLevelFiltering:
    def test_entries_below_min_level_are_dropped(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink, min_level=LogLevel.WARN)
        logger.debug("d")
        logger.info("i")
        logger.warn("w")
        logger.error("e")
        assert logger.wait_idle(5.0)
        assert sink.messages == ["w", "e"]

    def test_min_level_accepts_name(self) -> None:
        logger = MultiSinkLogger("error")
        assert logger.min_level is LogLevel.ERROR
        assert logger.is_enabled_for("error")
        assert not logger.is_enabled_for(LogLevel.WARN)

    def test_warning_alias(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        logger.warning("careful")
        logger.wait_idle(5.0)
        assert sink.entries[0].level is LogLevel.WARN


class TestFanOut:
    def test_every_sink_receives_the_same_entry(self) -> None:
        sinks = [RecordingSink(), RecordingSink(), RecordingSink()]
        logger = _logger(*sinks)
        logger.info("hello", {"k": "v"})
        logger.wait_idle(5.0)
        entries = [sink.entries[0] for sink in sinks]
        assert entries[0] is entries[1] is entries[2]
        assert entries[0].context == {"k": "v"}

    def test_failing_sink_does_not_affect_others(self) -> None:
        first, failing, third = RecordingSink(), FailingSink(), RecordingSink()
        logger = _logger(first, failing, third)

        logger.info("survives")
        asyncio.run(logger.flush())

        assert first.messages == ["survives"]
        assert third.messages == ["survives"]
        assert failing.attempts == 1
        assert logger.failures == {"failing": 2}

    def test_close_survives_failing_sink(self) -> None:
        ok, failing = RecordingSink(), FailingSink()
        logger = _logger(ok, failing)
        asyncio.run(logger.close())
        assert ok.closed

    def test_removed_sink_no_longer_receives(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        logger.remove_sink(sink)
        logger.info("gone")
        assert logger.wait_idle(5.0)
        assert sink.entries == []
        assert logger.sinks == ()

    def test_inside_event_loop_dispatch_is_scheduled(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)

        async def run() -> None:
            logger.info("later")
            assert sink.entries == []
            await logger.flush()
            assert sink.messages == ["later"]
            assert sink.flushes == 1

        asyncio.run(run())

    def test_slow_sink_does_not_delay_other_sinks(self) -> None:
        async def run() -> None:
            slow, fast = EventGatedSink(), RecordingSink()
            logger = _logger(slow, fast)
            logger.info("concurrent")
            for _ in range(5):
                await asyncio.sleep(0)
            assert fast.messages == ["concurrent"]
            assert slow.entries == []
            slow.release.set()
            await logger.flush()
            assert [e.message for e in slow.entries] == ["concurrent"]

        asyncio.run(run())

    def test_recording_sink_satisfies_protocol(self) -> None:
        assert isinstance(RecordingSink(), Sink)


class TestSynchronousCallers:
    def test_call_returns_without_waiting_on_slow_sink(self) -> None:
        slow, fast = ThreadGatedSink(), RecordingSink()
        logger = _logger(slow, fast)
        try:
            start = time.perf_counter()
            logger.info("hello")
            assert time.perf_counter() - start < 0.5
            assert not logger.wait_idle(0.1)
            assert slow.entries == []
        finally:
            slow.release.set()
        assert logger.wait_idle(5.0)
        assert fast.messages == ["hello"]
        assert [e.message for e in slow.entries] == ["hello"]
        asyncio.run(logger.close())

    def test_retry_backoff_does_not_block_caller(self) -> None:
        transport = FakeBatchTransport(fail_times=10)
        file_sink = ClientFileSink(
            "https://logs.example.com/api/logs",
            batch_size=1,
            retry_delay=0.2,
            transport=transport,
        )
        recording = RecordingSink()
        logger = _logger(file_sink, recording)

        start = time.perf_counter()
        logger.info("hello")
        assert time.perf_counter() - start < 0.2

        assert logger.wait_idle(10.0)
        assert recording.messages == ["hello"]
        assert transport.calls == 3
        assert file_sink.dropped_entries == 1
        asyncio.run(logger.close())

    def test_client_batch_timer_fires_for_sync_callers(self) -> None:
        transport = FakeBatchTransport()
        file_sink = ClientFileSink(
            "https://logs.example.com/api/logs",
            batch_size=10,
            flush_interval=0.05,
            transport=transport,
        )
        logger = _logger(file_sink)
        logger.info("first")
        time.sleep(0.1)
        logger.info("second")

        deadline = time.monotonic() + 5.0
        while sum(len(p["data"]["entries"]) for _, p in transport.sent) < 2:
            assert time.monotonic() < deadline, f"timer flush never fired; pending={file_sink.pending}"
            time.sleep(0.02)
        assert file_sink.pending == 0
        asyncio.run(logger.close())

    def test_flush_from_new_loop_drains_dispatch_thread(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        for i in range(20):
            logger.info(f"m{i}")
        asyncio.run(logger.flush())
        assert sink.messages == [f"m{i}" for i in range(20)]
        assert sink.flushes == 1
        asyncio.run(logger.close())
        assert sink.closed

    def test_logging_after_close_restarts_dispatch(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        logger.info("before")
        asyncio.run(logger.close())
        logger.info("after")
        assert logger.wait_idle(5.0)
        assert sink.messages == ["before", "after"]
        asyncio.run(logger.close())


class TestEntryContents:
    def test_call_site_context_wins(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink, context={"a": 1, "b": 1})
        logger.info("m", {"b": 2})
        logger.wait_idle(5.0)
        assert dict(sink.entries[0].context) == {"a": 1, "b": 2}

    def test_entry_carries_tags_and_ids(self) -> None:
        sink = RecordingSink()
        clock = FrozenClock(datetime(2025, 5, 1, tzinfo=UTC))
        logger = _logger(sink, tags=["api"], user_id="u-1", session_id="s-1", clock=clock)
        logger.info("m")
        logger.wait_idle(5.0)
        entry = sink.entries[0]
        assert entry.tags == ("api",)
        assert entry.user_id == "u-1"
        assert entry.session_id == "s-1"
        assert entry.timestamp == clock.now()

    def test_tags_are_snapshotted(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink, tags=["a"])
        logger.info("first")
        logger.add_tag("b")
        logger.info("second")
        logger.remove_tags("a")
        logger.info("third")
        logger.clear_tags()
        logger.info("fourth")
        logger.wait_idle(5.0)
        assert [e.tags for e in sink.entries] == [("a",), ("a", "b"), ("b",), ()]

    def test_context_mutation(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        logger.set_context({"request": "r-1"})
        logger.info("with")
        logger.clear_context()
        logger.info("without")
        logger.wait_idle(5.0)
        assert dict(sink.entries[0].context) == {"request": "r-1"}
        assert dict(sink.entries[1].context) == {}

    def test_error_accepts_exception_positionally(self) -> None:
        sink = RecordingSink()
        exc = ValueError("boom")
        logger = _logger(sink)
        logger.error("failed", exc)
        logger.wait_idle(5.0)
        entry = sink.entries[0]
        assert entry.error is exc
        assert dict(entry.context) == {}

    def test_log_sets_component_action_and_data(self) -> None:
        sink = RecordingSink()
        logger = _logger(sink)
        logger.log("warn", "m", component="cart", action="add", data={"n": 1})
        logger.wait_idle(5.0)
        entry = sink.entries[0]
        assert (entry.component, entry.action, entry.data) == ("cart", "add", {"n": 1})


class TestSessionId:
    def test_first_assignment_wins(self) -> None:
        logger = MultiSinkLogger()
        logger.set_session_id("s-1")
        logger.set_session_id("s-2")
        assert logger.session_id == "s-1"

    def test_constructor_value_is_fixed(self) -> None:
        logger = MultiSinkLogger(session_id="s-0")
        logger.set_session_id("s-1")
        assert logger.session_id == "s-0"

    def test_user_id_is_mutable(self) -> None:
        logger = MultiSinkLogger(user_id="a")
        logger.set_user_id("b")
        assert logger.user_id == "b"
