"""DailySummary model - one rollup per target per local calendar day."""
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint

from ..database import Base
from ..utils.time_utils import utc_now


class DailySummary(Base):
    __tablename__ = "daily_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_id = Column(Integer, ForeignKey("targets.id"), nullable=False)
    date = Column(String, nullable=False)  # YYYY-MM-DD
    total_checks = Column(Integer, nullable=False)
    up_checks = Column(Integer, nullable=False)
    uptime_percentage = Column(Float, nullable=False)
    avg_response_time_ms = Column(Float, nullable=True)
    min_response_time_ms = Column(Integer, nullable=True)
    max_response_time_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        UniqueConstraint("target_id", "date", name="uq_daily_summary_target_date"),
    )
