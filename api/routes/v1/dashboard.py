"""Dashboard endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import ensure_job_owner, get_current_user_id
from api.services import dashboard as dashboard_service
from api.services.subscriptions import get_subscription, subscription_summary
from core.utils.datetime import now
from database.engine import get_db

router = APIRouter()


@router.get("", summary="Get Dashboard")
async def get_dashboard(
    job_id: Optional[int] = Query(None, description="Limit to one job"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Application and job statistics, jobs needing attention and top candidates."""
    if job_id is not None:
        await ensure_job_owner(db, job_id, user_id)
    payload = await dashboard_service.get_dashboard(db, user_id, job_id=job_id)
    subscription = await get_subscription(db, user_id)
    return {**payload, "subscription": subscription_summary(subscription, now())}
