"""Schedule evaluator - decides whether a target is due for a check.

Gates, in order:
1. Admin-owned targets always run.
2. An elapsed trial requires a live paid subscription on the owner.
3. Weekday list (empty = every day).
4. Time windows (empty = all day, end < start spans midnight).
5. Minimum interval since the last check.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..models import MonitoredTarget
from ..models.owner import is_admin
from ..schemas.monitoring import MonitoringConfig, TimeWindow
from ..store import TargetStore
from ..utils.time_utils import ensure_utc, format_hhmm, parse_hhmm, to_local, weekday_index

logger = logging.getLogger(__name__)

REASON_ADMIN = "admin"
REASON_NO_CONFIG = "no monitoring config"
REASON_OWNER_MISSING = "owner not found"
REASON_TRIAL_EXPIRED = "trial expired without paid subscription"
REASON_NOT_MONITORING_DAY = "not a monitoring day"
REASON_OUTSIDE_WINDOW = "outside monitoring window"
REASON_TOO_SOON = "check interval not elapsed"
REASON_DUE = "due"


@dataclass
class ScheduleDecision:
    run: bool
    reason: str


def is_within_time_window(window: TimeWindow, now: datetime) -> bool:
    """True if local time of `now` falls inside the window (bounds inclusive)."""
    current = parse_hhmm(format_hhmm(to_local(now)))
    start = parse_hhmm(window.start)
    end = parse_hhmm(window.end)
    if end < start:
        return current >= start or current <= end
    return start <= current <= end


def is_within_any_window(windows: Iterable[TimeWindow], now: datetime) -> bool:
    """Empty window list is always satisfied."""
    windows = list(windows)
    if not windows:
        return True
    return any(is_within_time_window(w, now) for w in windows)


def is_monitoring_day(days_of_week: Iterable[int], now: datetime) -> bool:
    days = list(days_of_week)
    if not days:
        return True
    return weekday_index(to_local(now)) in days


def is_interval_elapsed(
    last_checked_at: Optional[datetime],
    interval_minutes: int,
    now: datetime,
) -> bool:
    """Never-checked targets are always due."""
    if last_checked_at is None:
        return True
    elapsed_ms = (now - ensure_utc(last_checked_at)).total_seconds() * 1000
    return elapsed_ms >= interval_minutes * 60000


def evaluate_schedule(config: MonitoringConfig, last_checked_at: Optional[datetime], now: datetime) -> ScheduleDecision:
    """Weekday, window and interval gates for a configured target."""
    if not is_monitoring_day(config.days_of_week, now):
        return ScheduleDecision(False, REASON_NOT_MONITORING_DAY)
    if not is_within_any_window(config.time_windows, now):
        return ScheduleDecision(False, REASON_OUTSIDE_WINDOW)
    if not is_interval_elapsed(last_checked_at, config.check_interval_minutes, now):
        return ScheduleDecision(False, REASON_TOO_SOON)
    return ScheduleDecision(True, REASON_DUE)


async def should_check_now(
    target: MonitoredTarget,
    now: datetime,
    store: TargetStore,
) -> ScheduleDecision:
    """Decide whether `target` should be checked at `now` (UTC-aware)."""
    if is_admin(target.owner_role, target.owner_plan):
        return ScheduleDecision(True, REASON_ADMIN)

    trial_ends_at = ensure_utc(target.trial_ends_at)
    if trial_ends_at is not None and trial_ends_at < now:
        # Subscription changes independently of the target, so read it fresh
        if target.owner_id is None:
            return ScheduleDecision(False, REASON_OWNER_MISSING)
        owner = await store.get_owner(target.owner_id)
        if owner is None:
            return ScheduleDecision(False, REASON_OWNER_MISSING)
        if not owner.has_paid_subscription(now):
            return ScheduleDecision(False, REASON_TRIAL_EXPIRED)

    config = target.monitoring_config
    if config is None:
        return ScheduleDecision(True, REASON_NO_CONFIG)

    return evaluate_schedule(config, target.last_checked_at, now)


def is_too_soon(target: MonitoredTarget, now: datetime) -> bool:
    """Overlap guard applied to every scheduled check, admin targets included."""
    interval = target.effective_config.check_interval_minutes
    return not is_interval_elapsed(target.last_checked_at, interval, now)
