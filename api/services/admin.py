"""
Platform administration: user listing, account status and platform-wide counts.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import now as utc_now
from core.utils.sql import LIKE_ESCAPE, like_pattern
from database.models.applications import Application
from database.models.jobs import Job
from database.models.subscriptions import PlanType, Subscription, SubscriptionStatus
from database.models.users import Profile, ProfileStatus

logger = logging.getLogger(__name__)


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "email": profile.email,
        "full_name": profile.full_name,
        "company_name": profile.company_name,
        "status": profile.status.value if profile.status else ProfileStatus.ACTIVE.value,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


async def list_users(
    session: AsyncSession,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
) -> Dict[str, Any]:
    """
    Profiles newest first, filtered by status and by a substring of name,
    email or company.

    Raises:
        ValueError: If status is not a known account status
    """
    query = select(Profile)
    if status:
        query = query.where(Profile.status == ProfileStatus(status))
    if search and search.strip():
        pattern = like_pattern(search.strip().lower())
        query = query.where(
            or_(
                func.lower(Profile.full_name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Profile.email).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Profile.company_name).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = (
        await session.execute(select(func.count()).select_from(query.subquery()))
    ).scalar_one()
    rows = (
        await session.execute(
            query.order_by(Profile.created_at.desc(), Profile.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    return {
        "items": [profile_to_dict(p) for p in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size if page_size else 0,
    }


async def update_user_status(
    session: AsyncSession, user_id: str, status: str, changed_by: Optional[str] = None
) -> Dict[str, Any]:
    """
    Set a user's account status. Data is never removed; "deleted" can be
    reversed by setting the account active again.

    Args:
        session: Database session
        user_id: Profile to update
        status: One of active, inactive, deleted
        changed_by: Admin making the change, for the log

    Returns:
        Dictionary with success flag and the updated user
    """
    try:
        new_status = ProfileStatus(status)
    except ValueError:
        return {"success": False, "error": f"Unknown status: {status}"}

    profile = await session.get(Profile, user_id)
    if profile is None:
        return {"success": False, "error": "User not found"}

    previous = profile.status
    profile.status = new_status
    await session.commit()

    logger.info(
        f"User {user_id} status changed from {getattr(previous, 'value', previous)} "
        f"to {new_status.value} by {changed_by or 'system'}"
    )
    return {"success": True, "user": profile_to_dict(profile)}


async def _count(session: AsyncSession, query) -> int:
    return (await session.execute(query)).scalar_one()


async def get_platform_stats(
    session: AsyncSession, now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Platform-wide totals with 7 and 30 day windows, and subscriptions by plan.

    Returns:
        Dictionary of counts
    """
    now = now or utc_now()
    last_7 = now - timedelta(days=7)
    last_30 = now - timedelta(days=30)

    plans = {plan.value: 0 for plan in PlanType}
    rows = await session.execute(
        select(Subscription.plan_type, func.count())
        .where(Subscription.status.in_([SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL]))
        .group_by(Subscription.plan_type)
    )
    for plan, count in rows.all():
        plans[getattr(plan, "value", plan)] = count

    users_by_status = {s.value: 0 for s in ProfileStatus}
    rows = await session.execute(select(Profile.status, func.count()).group_by(Profile.status))
    for profile_status, count in rows.all():
        users_by_status[getattr(profile_status, "value", profile_status)] = count

    return {
        "total_users": await _count(session, select(func.count()).select_from(Profile)),
        "users_last_7_days": await _count(
            session, select(func.count()).select_from(Profile).where(Profile.created_at >= last_7)
        ),
        "users_last_30_days": await _count(
            session, select(func.count()).select_from(Profile).where(Profile.created_at >= last_30)
        ),
        "users_by_status": users_by_status,
        "total_jobs": await _count(session, select(func.count()).select_from(Job)),
        "jobs_last_30_days": await _count(
            session, select(func.count()).select_from(Job).where(Job.created_at >= last_30)
        ),
        "total_applications": await _count(session, select(func.count()).select_from(Application)),
        "applications_last_30_days": await _count(
            session,
            select(func.count()).select_from(Application).where(Application.created_at >= last_30),
        ),
        "active_subscriptions": await _count(
            session,
            select(func.count()).select_from(Subscription).where(
                Subscription.status == SubscriptionStatus.ACTIVE
            ),
        ),
        "trial_subscriptions": await _count(
            session,
            select(func.count()).select_from(Subscription).where(
                Subscription.status == SubscriptionStatus.TRIAL
            ),
        ),
        "subscriptions_by_plan": plans,
        "generated_at": now.isoformat(),
    }
