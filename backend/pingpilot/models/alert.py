"""Alert model - log of sent alerts."""
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base
from ..utils.time_utils import utc_now


class Alert(Base):
    """Record of an alert dispatch attempt."""

    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_id = Column(Integer, nullable=False)  # kept after the target is deleted
    alert_type = Column(String, nullable=False)  # down, recovered, slow
    channel = Column(String, default="email")  # email, phone
    recipient = Column(String, nullable=True)
    subject = Column(String, nullable=True)
    success = Column(Integer, nullable=True)  # 1=success, 0=failed
    sent_at = Column(DateTime(timezone=True), default=utc_now)
