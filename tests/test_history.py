"""Tests for the history recorder."""
from datetime import date
from unittest.mock import AsyncMock

from pingpilot.services.checker import CheckResult
from pingpilot.services.history import HistoryRecorder, build_check_record
from tests.fakes import InMemoryStore, make_target, utc


def test_record_buckets():
    record = build_check_record(3, CheckResult(status="up", response_time_ms=42), utc(2026, 10, 19, 14, 47, 30))

    assert record.target_id == 3
    assert record.date == "2026-10-19"
    assert record.hour == 14
    assert record.minute == 47
    assert record.slot == 3
    assert record.response_time_ms == 42


def test_record_buckets_follow_local_timezone(monkeypatch):
    from pingpilot.config import settings
    monkeypatch.setattr(settings, "timezone", "Asia/Tokyo")

    record = build_check_record(3, CheckResult(status="up"), utc(2026, 10, 19, 20, 10))

    assert record.date == "2026-10-20"
    assert record.hour == 5
    assert record.slot == 0


async def test_record_writes_one_row():
    store = InMemoryStore()
    recorder = HistoryRecorder(store)

    ok = await recorder.record(1, CheckResult(status="down", error_message="HTTP 502: Bad Gateway"), utc(2026, 10, 19, 12, 0))

    assert ok is True
    assert len(store.records) == 1
    assert list(store.records.values())[0].error_message == "HTTP 502: Bad Gateway"


async def test_failed_write_is_swallowed():
    store = InMemoryStore()
    store.fail_record_writes = True

    ok = await HistoryRecorder(store).record(1, CheckResult(status="up"), utc(2026, 10, 19, 12, 0))

    assert ok is False
    assert store.records == {}


async def test_rollup_runs_for_previous_day_just_after_midnight():
    aggregator = AsyncMock()
    recorder = HistoryRecorder(InMemoryStore(), aggregator)

    await recorder.record(1, CheckResult(status="up"), utc(2026, 10, 19, 0, 3))

    aggregator.run_daily_rollup.assert_awaited_once_with(date(2026, 10, 18))


async def test_no_rollup_outside_midnight_window():
    aggregator = AsyncMock()
    recorder = HistoryRecorder(InMemoryStore(), aggregator)

    await recorder.record(1, CheckResult(status="up"), utc(2026, 10, 19, 0, 5))
    await recorder.record(1, CheckResult(status="up"), utc(2026, 10, 19, 13, 0))

    aggregator.run_daily_rollup.assert_not_awaited()


async def test_rollup_can_be_deferred_to_the_caller():
    aggregator = AsyncMock()
    recorder = HistoryRecorder(InMemoryStore(), aggregator)

    await recorder.record(1, CheckResult(status="up"), utc(2026, 10, 19, 0, 1), rollup=False)

    aggregator.run_daily_rollup.assert_not_awaited()


async def test_recent_hours():
    target = make_target()
    store = InMemoryStore([target])
    recorder = HistoryRecorder(store)
    await recorder.record(target.id, CheckResult(status="up", response_time_ms=100), utc(2026, 10, 19, 10, 5))
    await recorder.record(target.id, CheckResult(status="down"), utc(2026, 10, 19, 10, 35))
    await recorder.record(target.id, CheckResult(status="up", response_time_ms=300), utc(2026, 10, 19, 12, 15))
    # outside the 24 hour range
    await recorder.record(target.id, CheckResult(status="up", response_time_ms=50), utc(2026, 10, 18, 11, 0))

    hourly = await recorder.recent_hours(target.id, utc(2026, 10, 19, 12, 20))

    assert [p.hour for p in hourly] == [utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 12, 0)]
    assert hourly[0].total_checks == 2
    assert hourly[0].up_checks == 1
    assert hourly[0].uptime_percent == 50.0
    assert hourly[0].response_time_avg_ms == 100
    assert hourly[1].response_time_avg_ms == 300
