"""SQLAlchemy implementation of the persistence port."""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Alert, CheckRecord, DailySummary, MonitoredTarget, Owner
from ..utils.db_utils import chunked, retry_on_lock
from .base import StatusPatch, TargetStore, apply_patch

logger = logging.getLogger(__name__)


class SqlTargetStore(TargetStore):
    """Each call opens its own session so concurrent check tasks never share one."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def list_targets(self) -> List[MonitoredTarget]:
        async with self.session_factory() as session:
            result = await session.execute(select(MonitoredTarget).order_by(MonitoredTarget.id))
            return list(result.scalars().all())

    async def get_target(self, target_id: int) -> Optional[MonitoredTarget]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredTarget).where(MonitoredTarget.id == target_id)
            )
            return result.scalar_one_or_none()

    async def get_targets(self, target_ids: Sequence[int]) -> Dict[int, MonitoredTarget]:
        if not target_ids:
            return {}
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredTarget).where(MonitoredTarget.id.in_(list(target_ids)))
            )
            return {t.id: t for t in result.scalars().all()}

    async def get_owner(self, owner_id: int) -> Optional[Owner]:
        async with self.session_factory() as session:
            result = await session.execute(select(Owner).where(Owner.id == owner_id))
            return result.scalar_one_or_none()

    async def add_check_record(self, record: CheckRecord) -> None:
        async with self.session_factory() as session:
            session.add(record)
            await retry_on_lock(session.commit)

    async def list_check_records(
        self,
        target_id: int,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> List[CheckRecord]:
        query = select(CheckRecord).where(
            CheckRecord.target_id == target_id,
            CheckRecord.checked_at >= since,
        )
        if until is not None:
            query = query.where(CheckRecord.checked_at < until)
        async with self.session_factory() as session:
            result = await session.execute(query.order_by(CheckRecord.checked_at))
            return list(result.scalars().all())

    async def list_check_records_for_date(self, target_id: int, date: str) -> List[CheckRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(CheckRecord)
                .where(CheckRecord.target_id == target_id, CheckRecord.date == date)
                .order_by(CheckRecord.checked_at)
            )
            return list(result.scalars().all())

    async def delete_check_records(self, record_ids: Sequence[int]) -> int:
        deleted = 0
        for batch in chunked(list(record_ids)):
            async with self.session_factory() as session:
                await session.execute(delete(CheckRecord).where(CheckRecord.id.in_(batch)))
                await retry_on_lock(session.commit)
            deleted += len(batch)
        return deleted

    async def daily_summary_exists(self, target_id: int, date: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count(DailySummary.id)).where(
                    DailySummary.target_id == target_id,
                    DailySummary.date == date,
                )
            )
            return (result.scalar() or 0) > 0

    async def add_daily_summary(self, summary: DailySummary) -> None:
        async with self.session_factory() as session:
            session.add(summary)
            await retry_on_lock(session.commit)

    async def update_target_status(self, patch: StatusPatch) -> bool:
        updated = await self.apply_status_updates([patch])
        return patch.target_id in updated

    async def apply_status_updates(self, patches: Sequence[StatusPatch]) -> Set[int]:
        if not patches:
            return set()
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredTarget).where(
                    MonitoredTarget.id.in_([p.target_id for p in patches])
                )
            )
            targets = {t.id: t for t in result.scalars().all()}
            updated = set()
            for patch in patches:
                target = targets.get(patch.target_id)
                if target is None:
                    # Deleted while the pass was running
                    logger.debug(f"Target {patch.target_id} disappeared, dropping status update")
                    continue
                apply_patch(target, patch)
                updated.add(target.id)
            await retry_on_lock(session.commit)
            return updated

    async def record_alert(self, alert: Alert) -> None:
        async with self.session_factory() as session:
            session.add(alert)
            await retry_on_lock(session.commit)
