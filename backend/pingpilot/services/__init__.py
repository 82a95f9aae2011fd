"""Services for scheduling, checking, recording and alerting."""
from .checker import CheckerService, CheckResult
from .alerter import AlertKind
from .history import HistoryRecorder
from .retention import RetentionAggregator
from .notifier import Notifier
from .orchestrator import CheckOrchestrator
from .scheduler import SchedulerService

__all__ = [
    "CheckerService",
    "CheckResult",
    "AlertKind",
    "HistoryRecorder",
    "RetentionAggregator",
    "Notifier",
    "CheckOrchestrator",
    "SchedulerService",
]
