"""Owner model - account that owns monitored targets and holds the subscription."""
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base
from ..utils.time_utils import ensure_utc, utc_now

# Subscription plan identifiers
PLAN_FREE = "free"
PLAN_MONTHLY = "monthly"
PLAN_HALF_YEARLY = "halfYearly"
PLAN_YEARLY = "yearly"
PLAN_ADMIN = "admin"

PLAN_TYPES = (PLAN_FREE, PLAN_MONTHLY, PLAN_HALF_YEARLY, PLAN_YEARLY, PLAN_ADMIN)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class Owner(Base):
    """Account owning targets. Read-only from the check engine's point of view."""

    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, default=ROLE_USER)  # user, admin
    plan = Column(String, default=PLAN_FREE)  # free, monthly, halfYearly, yearly, admin
    plan_ends_at = Column(DateTime(timezone=True), nullable=True)  # NULL = never expires
    created_at = Column(DateTime(timezone=True), default=utc_now)

    def has_paid_subscription(self, now: datetime) -> bool:
        """True when the plan is not free and has not ended."""
        if self.role == ROLE_ADMIN or self.plan == PLAN_ADMIN:
            return True
        if not self.plan or self.plan == PLAN_FREE:
            return False
        if self.plan_ends_at is None:
            return True
        return ensure_utc(self.plan_ends_at) > now


def is_admin(role: Optional[str], plan: Optional[str]) -> bool:
    return role == ROLE_ADMIN or plan == PLAN_ADMIN
