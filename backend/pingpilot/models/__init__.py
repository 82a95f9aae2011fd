"""Database models."""
from .owner import Owner
from .target import MonitoredTarget
from .check_record import CheckRecord
from .daily_summary import DailySummary
from .alert import Alert

__all__ = ["Owner", "MonitoredTarget", "CheckRecord", "DailySummary", "Alert"]
