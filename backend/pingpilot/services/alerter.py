"""Alerter service - decides whether a check warrants an alert and of which kind."""
import enum
import logging
from datetime import datetime
from typing import List, Optional

from ..models.target import STATUS_DOWN, STATUS_UP
from ..schemas.monitoring import AlertConfig
from .checker import CheckResult
from .schedule import is_within_any_window

logger = logging.getLogger(__name__)


class AlertKind(str, enum.Enum):
    DOWN = "down"
    RECOVERED = "recovered"
    SLOW = "slow"


def decide(
    previous_status: Optional[str],
    result: CheckResult,
    alert_config: AlertConfig,
) -> Optional[AlertKind]:
    """Pick at most one alert kind for a check.

    Transitions win over slowness: a check that just went down or came back
    never also reports SLOW.
    """
    new_status = result.status

    if new_status == STATUS_DOWN and previous_status != STATUS_DOWN:
        return AlertKind.DOWN

    if new_status == STATUS_UP and previous_status != STATUS_UP:
        return AlertKind.RECOVERED

    if (
        new_status == STATUS_UP
        and result.response_time_ms is not None
        and result.response_time_ms > alert_config.response_threshold_ms
    ):
        return AlertKind.SLOW

    return None


def has_contact_channel(alert_config: AlertConfig, emails: List[str], phones: List[str]) -> bool:
    """At least one enabled channel with somebody to reach."""
    return bool((alert_config.email and emails) or (alert_config.phone and phones))


def should_dispatch(
    alert_config: AlertConfig,
    emails: List[str],
    phones: List[str],
    now: datetime,
) -> bool:
    """Gate applied after `decide`: enabled, reachable and inside the alert window."""
    if not alert_config.enabled:
        return False
    if not has_contact_channel(alert_config, emails, phones):
        return False
    windows = [alert_config.time_window] if alert_config.time_window else []
    return is_within_any_window(windows, now)
