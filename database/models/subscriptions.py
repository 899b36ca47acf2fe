"""
Subscription state per user, written by billing webhooks and read for plan
gating.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    func,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


class PlanType(str, PyEnum):
    """Subscription plans."""

    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, PyEnum):
    """Subscription status options."""

    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    PAUSED = "paused"


class Subscription(Base):
    """A user's plan and billing period."""

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    plan_type: Mapped[PlanType] = mapped_column(
        SQLEnum(PlanType, native_enum=False, length=20),
        nullable=False,
        default=PlanType.STARTER,
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        SQLEnum(SubscriptionStatus, native_enum=False, length=20),
        nullable=False,
        default=SubscriptionStatus.TRIAL,
    )

    # Billing vendor references
    paddle_subscription_id: Mapped[str | None] = mapped_column(String(255), index=True)
    paddle_customer_id: Mapped[str | None] = mapped_column(String(255))

    # Lifecycle dates
    trial_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    trial_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    subscription_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    subscription_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    current_period_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    current_period_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Usage counters
    job_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    applications_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        onupdate=now,
        server_default=func.now(),
    )
