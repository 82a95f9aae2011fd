"""Pydantic schemas for API request/response and config models."""
from .monitoring import (
    TimeWindow,
    AlertConfig,
    MonitoringConfig,
)
from .check import (
    CheckRunSummary,
    ManualCheckRequest,
    CheckResultResponse,
    HourlyPoint,
    ManualCheckResponse,
)

__all__ = [
    "TimeWindow",
    "AlertConfig",
    "MonitoringConfig",
    "CheckRunSummary",
    "ManualCheckRequest",
    "CheckResultResponse",
    "HourlyPoint",
    "ManualCheckResponse",
]
