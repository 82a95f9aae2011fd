"""Monitoring and alert configuration embedded in each target.

All schedule and alert defaults are defined here and nowhere else.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

DEFAULT_CHECK_INTERVAL_MINUTES = 5
DEFAULT_RESPONSE_THRESHOLD_MS = 1000


class TimeWindow(BaseModel):
    """Local-time range; end < start means the window spans midnight."""
    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)


class AlertConfig(BaseModel):
    """When and how a target alerts its contacts."""
    enabled: bool = True
    email: bool = True
    phone: bool = False  # Declared channel, no dispatcher yet
    response_threshold_ms: int = Field(default=DEFAULT_RESPONSE_THRESHOLD_MS, ge=1)
    time_window: Optional[TimeWindow] = None  # None = alert at any time


class MonitoringConfig(BaseModel):
    """Schedule for a target. Empty days/windows mean every day/all day."""
    check_interval_minutes: int = Field(default=DEFAULT_CHECK_INTERVAL_MINUTES, ge=1, le=1440)
    days_of_week: List[int] = Field(default_factory=list)  # 0=Sunday .. 6=Saturday
    time_windows: List[TimeWindow] = Field(default_factory=list)
    alerts: AlertConfig = Field(default_factory=AlertConfig)

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: List[int]) -> List[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError(f"Invalid weekday: {day}")
        return sorted(set(value))
