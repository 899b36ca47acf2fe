"""Hiring analytics endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import ensure_job_owner, get_current_user_id
from api.services import analytics as analytics_service
from database.engine import get_db

router = APIRouter()


@router.get("", summary="Get Hiring Analytics")
async def get_analytics(
    job_id: Optional[int] = Query(None, description="Limit to one job"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """30-day trend, hire and conversion rates, and per-job performance."""
    if job_id is not None:
        await ensure_job_owner(db, job_id, user_id)
    return await analytics_service.get_analytics(db, user_id, job_id=job_id)
