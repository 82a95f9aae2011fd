"""History recorder - appends one CheckRecord per executed check."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ..models import CheckRecord
from ..schemas.check import HourlyPoint
from ..store import TargetStore
from ..utils.time_utils import (
    ensure_utc,
    format_date,
    is_in_midnight_window,
    previous_local_date,
    to_local,
)
from .checker import CheckResult
from .retention import RetentionAggregator

logger = logging.getLogger(__name__)

RECENT_HOURS = 24


def build_check_record(target_id: int, result: CheckResult, checked_at: datetime) -> CheckRecord:
    """CheckRecord with server-local date/hour/minute/slot buckets."""
    local = to_local(checked_at)
    return CheckRecord(
        target_id=target_id,
        status=result.status,
        response_time_ms=result.response_time_ms,
        error_message=result.error_message,
        checked_at=checked_at,
        date=format_date(local.date()),
        hour=local.hour,
        minute=local.minute,
        slot=local.minute // 15,
    )


class HistoryRecorder:
    """Best-effort history writes; a lost record never fails the check."""

    def __init__(self, store: TargetStore, aggregator: Optional[RetentionAggregator] = None):
        self.store = store
        self.aggregator = aggregator or RetentionAggregator(store)

    async def record(
        self,
        target_id: int,
        result: CheckResult,
        checked_at: datetime,
        rollup: bool = True,
    ) -> bool:
        """Write one record. With `rollup`, trigger the daily rollup near local midnight."""
        try:
            await self.store.add_check_record(build_check_record(target_id, result, checked_at))
        except Exception as e:
            logger.error(f"Failed to record history for target {target_id}: {e}")
            return False

        if rollup:
            await self.maybe_rollup(checked_at)
        return True

    async def maybe_rollup(self, now: datetime) -> bool:
        """Run yesterday's rollup if `now` is within the first minutes after local midnight."""
        if not is_in_midnight_window(now):
            return False
        await self.aggregator.run_daily_rollup(previous_local_date(now))
        return True

    async def recent_hours(self, target_id: int, now: datetime, hours: int = RECENT_HOURS) -> List[HourlyPoint]:
        """Hourly buckets over the last `hours` hours, oldest first. Empty hours are omitted."""
        end = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        start = end - timedelta(hours=hours)
        records = await self.store.list_check_records(target_id, start, end)

        buckets = {}
        for record in records:
            checked_at = ensure_utc(record.checked_at)
            hour = checked_at.replace(minute=0, second=0, microsecond=0)
            buckets.setdefault(hour, []).append(record)

        history = []
        for hour in sorted(buckets):
            bucket = buckets[hour]
            up_count = sum(1 for r in bucket if r.status == "up")
            response_times = [r.response_time_ms for r in bucket if r.response_time_ms is not None]
            avg_response = int(sum(response_times) / len(response_times)) if response_times else None
            history.append(HourlyPoint(
                hour=hour,
                total_checks=len(bucket),
                up_checks=up_count,
                uptime_percent=round(up_count / len(bucket) * 100, 2),
                response_time_avg_ms=avg_response,
            ))
        return history
