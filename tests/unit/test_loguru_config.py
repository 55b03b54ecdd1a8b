"""Tests for loguru configuration and timing helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger

from genstats.observability import configure_loguru, get_logger, log_timing, timing_context


@pytest.fixture
def captured():
    """Collect loguru records emitted during a test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def read_jsonl(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestTimingContext:
    def test_start_and_end_records(self, captured):
        with timing_context("get_count", component="stats", unit="day") as ctx:
            ctx["buckets"] = 2

        timing = [r for r in captured if r["extra"].get("operation") == "get_count"]
        assert [r["extra"]["phase"] for r in timing] == ["start", "end"]
        end = timing[-1]
        assert end["extra"]["component"] == "stats"
        assert end["extra"]["unit"] == "day"
        assert end["extra"]["buckets"] == 2
        assert end["extra"]["duration_ms"] >= 0

    def test_end_logged_on_error(self, captured):
        with pytest.raises(RuntimeError):
            with timing_context("explode", component="stats"):
                raise RuntimeError("boom")

        phases = [r["extra"]["phase"] for r in captured if r["extra"].get("operation") == "explode"]
        assert phases == ["start", "end"]

    def test_log_timing_decorator(self, captured):
        @log_timing(component="store")
        def lookup(value: int) -> int:
            return value * 2

        assert lookup(21) == 42
        ops = {r["extra"]["operation"] for r in captured if r["extra"].get("timing")}
        assert any(op.endswith("lookup") for op in ops)


def test_get_logger_binds_component(captured):
    get_logger("ingest").info("parsed")
    assert captured[-1]["extra"]["component"] == "ingest"


def test_configure_loguru_writes_component_files(tmp_path: Path):
    log_dir = tmp_path / "logs"
    configure_loguru(log_dir=log_dir, level="DEBUG", enable_console=False)
    try:
        get_logger("store").info("saved record")
        with timing_context("find_created_after", component="store"):
            pass

        # read before removing the sinks, closed files get compressed
        assert (log_dir / "genstats.jsonl").exists()
        store_lines = read_jsonl(log_dir / "store.jsonl")
        assert any(line["record"]["message"] == "saved record" for line in store_lines)
        assert not (log_dir / "ingest.jsonl").read_text().strip()

        timing_lines = read_jsonl(log_dir / "timing.jsonl")
        assert {line["record"]["extra"]["phase"] for line in timing_lines} == {"start", "end"}
    finally:
        logger.remove()
