"""Unit tests for ServerFileSink."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from mp_logpipe.core import LogEntry, LogLevel
from mp_logpipe.kernel.errors import SinkDeliveryError
from mp_logpipe.sinks import ServerFileSink


def _entry(i: int, **kwargs: object) -> LogEntry:
    return LogEntry(
        level=LogLevel.INFO,
        message=f"entry {i:02d}",
        timestamp=datetime(2024, 1, 1, tzinfo=UTC),
        **kwargs,  # type: ignore[arg-type]
    )


def _lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestServerFileSink:
    def test_writes_ndjson(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "server.log"
        sink = ServerFileSink(path)

        async def run() -> None:
            for i in range(3):
                await sink.write(_entry(i, context={"password": "p"}))
            await sink.close()

        asyncio.run(run())
        records = _lines(path)
        assert [r["message"] for r in records] == ["entry 00", "entry 01", "entry 02"]
        assert records[0]["context"] == {"password": "[PII_REDACTED]"}
        assert sink.written == 3

    def test_flush_waits_for_writer(self, tmp_path: Path) -> None:
        path = tmp_path / "server.log"
        sink = ServerFileSink(path)

        async def run() -> None:
            await sink.write(_entry(1))
            await sink.flush()
            assert _lines(path)[0]["message"] == "entry 01"
            await sink.close()

        asyncio.run(run())

    def test_rotation(self, tmp_path: Path) -> None:
        path = tmp_path / "server.log"
        sink = ServerFileSink(path, max_file_size=200, max_files=3)

        async def run() -> None:
            for i in range(30):
                await sink.write(_entry(i))
            await sink.close()

        asyncio.run(run())
        assert path.exists()
        assert (tmp_path / "server.log.1").exists()
        assert (tmp_path / "server.log.2").exists()
        assert not (tmp_path / "server.log.3").exists()
        assert sink.rotations >= 2
        for file in (path, tmp_path / "server.log.1", tmp_path / "server.log.2"):
            assert file.stat().st_size <= 200
        assert _lines(path)[-1]["message"] == "entry 29"
        newest_rotated = _lines(tmp_path / "server.log.1")
        assert newest_rotated[-1]["message"] < _lines(path)[0]["message"]  # type: ignore[operator]

    def test_rotated_path(self, tmp_path: Path) -> None:
        sink = ServerFileSink(tmp_path / "app.log")
        assert sink.rotated_path(0) == tmp_path / "app.log"
        assert sink.rotated_path(2) == tmp_path / "app.log.2"

    def test_full_queue_drops_oldest(self, tmp_path: Path) -> None:
        path = tmp_path / "server.log"
        sink = ServerFileSink(path, queue_size=2)
        with sink._cond:
            for i in range(5):
                sink.enqueue(f"{i}\n".encode())
            assert sink.dropped == 3
        assert sink.wait_idle(5)
        asyncio.run(sink.close())
        assert path.read_text() == "3\n4\n"

    def test_write_after_close_is_counted(self, tmp_path: Path) -> None:
        sink = ServerFileSink(tmp_path / "server.log")
        asyncio.run(sink.close())
        with pytest.raises(SinkDeliveryError):
            sink.enqueue(b"x\n")
        asyncio.run(sink.write(_entry(1)))
        assert sink.failures == 1

    def test_invalid_max_files(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ServerFileSink(tmp_path / "server.log", max_files=0)
