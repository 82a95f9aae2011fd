"""Retention aggregator - rolls a day of check records into one summary per target.

This is the only place fine-grained history is discarded. Safe to run more than
once for the same date: an existing summary is never written twice, and a re-run
only deletes whatever records a previous partial run left behind.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from ..models import CheckRecord, DailySummary
from ..store import TargetStore
from ..utils.time_utils import format_date

logger = logging.getLogger(__name__)


@dataclass
class RollupStats:
    summaries_written: int = 0
    records_deleted: int = 0
    targets_failed: int = 0


def summarize_records(target_id: int, day: str, records: Sequence[CheckRecord]) -> DailySummary:
    """Build a DailySummary from one target's records for one day."""
    total = len(records)
    up_count = sum(1 for r in records if r.status == "up")
    response_times = [r.response_time_ms for r in records if r.response_time_ms is not None]

    avg_response: Optional[float] = None
    if response_times:
        avg_response = round(sum(response_times) / len(response_times), 2)

    return DailySummary(
        target_id=target_id,
        date=day,
        total_checks=total,
        up_checks=up_count,
        uptime_percentage=round(up_count / total * 100, 2) if total else 0.0,
        avg_response_time_ms=avg_response,
        min_response_time_ms=min(response_times) if response_times else None,
        max_response_time_ms=max(response_times) if response_times else None,
    )


class RetentionAggregator:
    """Daily rollup of CheckRecords into DailySummary rows."""

    def __init__(self, store: TargetStore):
        self.store = store

    async def run_daily_rollup(self, day: date) -> RollupStats:
        """Roll up `day` for every known target. Failures are logged per target."""
        day_str = format_date(day)
        stats = RollupStats()

        try:
            targets = await self.store.list_targets()
        except Exception as e:
            logger.error(f"Daily rollup for {day_str} could not list targets: {e}")
            stats.targets_failed += 1
            return stats

        for target in targets:
            try:
                written, deleted = await self.rollup_target(target.id, day_str)
                stats.summaries_written += written
                stats.records_deleted += deleted
            except Exception as e:
                logger.error(f"Daily rollup failed for target {target.id} on {day_str}: {e}")
                stats.targets_failed += 1

        if stats.summaries_written or stats.records_deleted:
            logger.info(
                f"Daily rollup for {day_str}: {stats.summaries_written} summaries, "
                f"{stats.records_deleted} records deleted"
            )
        return stats

    async def rollup_target(self, target_id: int, day: str) -> tuple:
        """Returns (summaries_written, records_deleted) for one target."""
        records: List[CheckRecord] = await self.store.list_check_records_for_date(target_id, day)
        if not records:
            return 0, 0

        written = 0
        if await self.store.daily_summary_exists(target_id, day):
            logger.debug(f"Summary for target {target_id} on {day} exists, deleting leftover records only")
        else:
            await self.store.add_daily_summary(summarize_records(target_id, day, records))
            written = 1

        deleted = await self.store.delete_check_records([r.id for r in records])
        return written, deleted
