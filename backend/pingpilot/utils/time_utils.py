"""Time helpers for server-local scheduling and history buckets."""
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import settings

# A rollup is attempted while local time is within this many minutes after midnight.
MIDNIGHT_WINDOW_MINUTES = 5


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_tz() -> Optional[tzinfo]:
    """Configured server-local timezone, or None for the host's local time."""
    if settings.timezone:
        return ZoneInfo(settings.timezone)
    return None


def to_local(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(local_tz())


def weekday_index(local: datetime) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday."""
    return (local.weekday() + 1) % 7


def format_hhmm(local: datetime) -> str:
    return f"{local.hour:02d}:{local.minute:02d}"


def parse_hhmm(value: str) -> int:
    """Parse "HH:MM" into minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_in_midnight_window(now: datetime) -> bool:
    local = to_local(now)
    return local.hour == 0 and local.minute < MIDNIGHT_WINDOW_MINUTES


def previous_local_date(now: datetime) -> date:
    return to_local(now).date() - timedelta(days=1)


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")
