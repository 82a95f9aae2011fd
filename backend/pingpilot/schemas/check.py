"""Check run schemas for API."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class CheckRunSummary(BaseModel):
    """Counters for one orchestrator pass."""
    total: int = 0
    checked: int = 0
    up: int = 0
    down: int = 0
    error: int = 0
    skipped: int = 0
    alerts_sent: int = 0


class ManualCheckRequest(BaseModel):
    """Request to check one target immediately."""
    target_id: int


class CheckResultResponse(BaseModel):
    """Outcome of a single check."""
    status: str
    response_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    checked_at: datetime


class HourlyPoint(BaseModel):
    """Aggregated check records for one hour."""
    hour: datetime
    total_checks: int
    up_checks: int
    uptime_percent: float
    response_time_avg_ms: Optional[int] = None


class ManualCheckResponse(BaseModel):
    """Manual check result plus recent hourly history."""
    target_id: int
    result: CheckResultResponse
    alert_sent: bool = False
    hourly: List[HourlyPoint]
