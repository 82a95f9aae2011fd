"""MonitoredTarget model - URLs and hosts being monitored."""
import json
from typing import List, Optional
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from ..database import Base
from ..utils.time_utils import utc_now
from ..schemas.monitoring import MonitoringConfig

STATUS_UNKNOWN = "unknown"
STATUS_UP = "up"
STATUS_DOWN = "down"

# Every type except tcp is checked over HTTP
TARGET_TYPES = ("website", "http", "https", "api", "database", "tcp")


class MonitoredTarget(Base):
    """A monitored endpoint - HTTP-like URL or tcp host:port."""

    __tablename__ = "targets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)  # URL or host[:port]
    type = Column(String, nullable=False, default="website")

    # Owner snapshot taken at creation, used for gating without a lookup
    owner_role = Column(String, nullable=True)
    owner_plan = Column(String, nullable=True)

    monitoring = Column(String, nullable=True)  # JSON: MonitoringConfig, NULL = legacy target
    contact_emails = Column(String, nullable=True)  # JSON list
    contact_phones = Column(String, nullable=True)  # JSON list
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)

    # Runtime status, written only by the check engine
    status = Column(String, nullable=False, default=STATUS_UNKNOWN)
    last_response_time_ms = Column(Integer, nullable=True)
    last_error_message = Column(String, nullable=True)
    last_checked_at = Column(DateTime(timezone=True), nullable=True)
    last_status_change_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    @property
    def monitoring_config(self) -> Optional[MonitoringConfig]:
        """Parsed monitoring config, or None when the target predates schedules."""
        if not self.monitoring:
            return None
        return MonitoringConfig.model_validate_json(self.monitoring)

    @property
    def effective_config(self) -> MonitoringConfig:
        return self.monitoring_config or MonitoringConfig()

    @property
    def emails(self) -> List[str]:
        return _load_list(self.contact_emails)

    @property
    def phones(self) -> List[str]:
        return _load_list(self.contact_phones)


def _load_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        return []
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, str) and v.strip()]
