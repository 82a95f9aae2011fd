"""CheckRecord model - one row per executed check."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index

from ..database import Base


class CheckRecord(Base):
    """Append-only check outcome, rolled up and deleted by the daily aggregator."""

    __tablename__ = "check_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_id = Column(Integer, ForeignKey("targets.id"), nullable=False)
    status = Column(String, nullable=False)  # up, down
    response_time_ms = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)
    checked_at = Column(DateTime(timezone=True), nullable=False)

    # Server-local buckets, denormalized for range queries
    date = Column(String, nullable=False)  # YYYY-MM-DD
    hour = Column(Integer, nullable=False)
    minute = Column(Integer, nullable=False)
    slot = Column(Integer, nullable=False)  # 15-minute slot within the hour, 0-3

    __table_args__ = (
        Index("ix_check_records_target_checked", "target_id", "checked_at"),
        Index("ix_check_records_target_date", "target_id", "date"),
    )
