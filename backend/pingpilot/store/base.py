"""Persistence port used by the check engine."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from ..models import Alert, CheckRecord, DailySummary, MonitoredTarget, Owner


@dataclass
class StatusPatch:
    """Explicit field list written to a target after a check."""
    target_id: int
    status: str
    response_time_ms: Optional[int]
    error_message: Optional[str]
    checked_at: datetime
    status_changed_at: Optional[datetime] = None  # set only on a status transition


class TargetStore(ABC):
    """Storage operations the engine needs, independent of the backing database."""

    @abstractmethod
    async def list_targets(self) -> List[MonitoredTarget]:
        """Bulk read of every target."""

    @abstractmethod
    async def get_target(self, target_id: int) -> Optional[MonitoredTarget]:
        ...

    @abstractmethod
    async def get_targets(self, target_ids: Sequence[int]) -> Dict[int, MonitoredTarget]:
        """Read the given targets; ids that no longer exist are absent."""

    @abstractmethod
    async def get_owner(self, owner_id: int) -> Optional[Owner]:
        ...

    @abstractmethod
    async def add_check_record(self, record: CheckRecord) -> None:
        ...

    @abstractmethod
    async def list_check_records(
        self,
        target_id: int,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> List[CheckRecord]:
        """Records for a target with since <= checked_at < until, oldest first."""

    @abstractmethod
    async def list_check_records_for_date(self, target_id: int, date: str) -> List[CheckRecord]:
        ...

    @abstractmethod
    async def delete_check_records(self, record_ids: Sequence[int]) -> int:
        """Delete records in bounded batches. Returns the number of ids processed."""

    @abstractmethod
    async def daily_summary_exists(self, target_id: int, date: str) -> bool:
        ...

    @abstractmethod
    async def add_daily_summary(self, summary: DailySummary) -> None:
        ...

    @abstractmethod
    async def update_target_status(self, patch: StatusPatch) -> bool:
        """Apply one patch if the target still exists. Returns False otherwise."""

    @abstractmethod
    async def apply_status_updates(self, patches: Sequence[StatusPatch]) -> Set[int]:
        """Apply all patches in one commit. Returns ids of targets updated."""

    @abstractmethod
    async def record_alert(self, alert: Alert) -> None:
        ...


def apply_patch(target: MonitoredTarget, patch: StatusPatch) -> None:
    """Copy a patch onto a target row. last_status_change_at moves only on transitions."""
    target.status = patch.status
    target.last_response_time_ms = patch.response_time_ms
    target.last_error_message = patch.error_message
    target.last_checked_at = patch.checked_at
    if patch.status_changed_at is not None:
        target.last_status_change_at = patch.status_changed_at
    target.version = (target.version or 0) + 1
