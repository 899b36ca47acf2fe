"""
Subscription plan gating.

Plan limits and trial arithmetic are pure functions of a Subscription and an
explicit ``now``; only get_subscription touches the database.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import as_utc, days_until
from database.models.subscriptions import PlanType, Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)

UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    max_jobs: int
    max_applications: int  # per calendar month
    has_scout_ai: bool


PLAN_LIMITS: Dict[PlanType, PlanLimits] = {
    PlanType.STARTER: PlanLimits(max_jobs=3, max_applications=100, has_scout_ai=False),
    PlanType.PROFESSIONAL: PlanLimits(max_jobs=15, max_applications=500, has_scout_ai=True),
    PlanType.ENTERPRISE: PlanLimits(
        max_jobs=UNLIMITED, max_applications=UNLIMITED, has_scout_ai=True
    ),
}


def get_plan_limits(plan_type: PlanType) -> PlanLimits:
    return PLAN_LIMITS.get(plan_type, PLAN_LIMITS[PlanType.STARTER])


def is_trial_active(sub: Optional[Subscription], now: datetime) -> bool:
    if sub is None or sub.status != SubscriptionStatus.TRIAL or sub.trial_end_date is None:
        return False
    return as_utc(sub.trial_end_date) > as_utc(now)


def trial_days_remaining(sub: Optional[Subscription], now: datetime) -> int:
    """Whole days left in the trial, rounded up; 0 once it has ended."""
    if not is_trial_active(sub, now):
        return 0
    return days_until(sub.trial_end_date, now)


def has_active_access(sub: Optional[Subscription], now: datetime) -> bool:
    if sub is None:
        return False
    if sub.status == SubscriptionStatus.ACTIVE:
        return True
    return is_trial_active(sub, now)


def _within_limit(limit: int, current: int) -> bool:
    return limit == UNLIMITED or current < limit


def can_create_job(sub: Optional[Subscription], current_jobs: int, now: datetime) -> bool:
    """True when the subscription grants access and the plan's job ceiling is not reached."""
    if not has_active_access(sub, now):
        return False
    return _within_limit(get_plan_limits(sub.plan_type).max_jobs, current_jobs)


def can_create_application(
    sub: Optional[Subscription], current_month_count: int, now: datetime
) -> bool:
    """True when the plan's monthly application ceiling is not reached."""
    if not has_active_access(sub, now):
        return False
    return _within_limit(get_plan_limits(sub.plan_type).max_applications, current_month_count)


async def get_subscription(session: AsyncSession, user_id: str) -> Optional[Subscription]:
    result = await session.execute(select(Subscription).where(Subscription.user_id == user_id))
    return result.scalar_one_or_none()


def subscription_summary(sub: Optional[Subscription], now: datetime) -> Dict[str, Any]:
    """Serializable view of a subscription and what it currently allows."""
    if sub is None:
        return {"plan_type": None, "status": None, "has_access": False, "trial_days_remaining": 0}
    limits = get_plan_limits(sub.plan_type)
    return {
        "plan_type": sub.plan_type.value,
        "status": sub.status.value,
        "has_access": has_active_access(sub, now),
        "trial_active": is_trial_active(sub, now),
        "trial_days_remaining": trial_days_remaining(sub, now),
        "max_jobs": limits.max_jobs,
        "max_applications": limits.max_applications,
        "has_scout_ai": limits.has_scout_ai,
    }
