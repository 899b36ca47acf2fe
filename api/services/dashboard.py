"""
Dashboard projections.

The compute_* functions are pure: they take already-loaded rows and an
explicit ``now`` and never touch the database or the clock. get_dashboard
loads the rows, projects them and caches the result in Redis.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
import math
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.cache import dashboard_key, redis_cache
from core.config import settings
from core.utils.datetime import is_within_last_days, now as utc_now
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)

HIGH_QUALITY_RATING = 2.5
ATTENTION_PENDING_THRESHOLD = 10
TOP_CANDIDATE_SHARE = 0.1


@dataclass(frozen=True)
class ApplicationStats:
    total: int = 0
    pending_count: int = 0
    reviewed_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    average_rating: float = 0.0
    rated_count: int = 0
    average_rated_rating: float = 0.0
    this_week_count: int = 0
    high_quality_count: int = 0


@dataclass(frozen=True)
class JobStats:
    total: int = 0
    active: int = 0
    draft: int = 0
    paused: int = 0
    closed: int = 0
    total_views: int = 0
    created_this_week: int = 0


def _status_value(status: Any) -> str:
    return status.value if hasattr(status, "value") else str(status)


def compute_application_stats(
    applications: Sequence[Application], now: datetime
) -> ApplicationStats:
    """
    Summarize applications.

    average_rating counts unrated applications as 0; average_rated_rating
    only looks at rated ones. Both are 0.0 for an empty input.
    """
    total = len(applications)
    if total == 0:
        return ApplicationStats()

    by_status = {status.value: 0 for status in ApplicationStatus}
    for application in applications:
        key = _status_value(application.status)
        by_status[key] = by_status.get(key, 0) + 1

    ratings = [a.ai_rating for a in applications if a.ai_rating is not None]
    return ApplicationStats(
        total=total,
        pending_count=by_status[ApplicationStatus.PENDING.value],
        reviewed_count=by_status[ApplicationStatus.REVIEWED.value],
        approved_count=by_status[ApplicationStatus.APPROVED.value],
        rejected_count=by_status[ApplicationStatus.REJECTED.value],
        average_rating=round(sum(ratings) / total, 2),
        rated_count=len(ratings),
        average_rated_rating=round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
        this_week_count=sum(1 for a in applications if is_within_last_days(a.created_at, 7, now)),
        high_quality_count=sum(1 for r in ratings if r >= HIGH_QUALITY_RATING),
    )


def jobs_needing_attention(
    jobs: Iterable[Job], applications: Iterable[Application]
) -> List[Job]:
    """Jobs with at least ATTENTION_PENDING_THRESHOLD pending applications."""
    pending: Dict[int, int] = {}
    for application in applications:
        if _status_value(application.status) == ApplicationStatus.PENDING.value:
            pending[application.job_id] = pending.get(application.job_id, 0) + 1
    return [job for job in jobs if pending.get(job.id, 0) >= ATTENTION_PENDING_THRESHOLD]


def top_candidates(applications: Iterable[Application]) -> List[Application]:
    """
    The top tenth of rated applications (at least one), keeping only ratings >= 2.5.

    Returns:
        Applications sorted by ai_rating descending; empty when nothing is rated
    """
    rated = sorted(
        (a for a in applications if a.ai_rating is not None),
        key=lambda a: a.ai_rating,
        reverse=True,
    )
    if not rated:
        return []
    count = max(1, math.ceil(TOP_CANDIDATE_SHARE * len(rated)))
    return [a for a in rated[:count] if a.ai_rating >= HIGH_QUALITY_RATING]


def compute_job_stats(jobs: Sequence[Job], now: datetime) -> JobStats:
    counts = {status.value: 0 for status in JobStatus}
    for job in jobs:
        key = _status_value(job.status)
        counts[key] = counts.get(key, 0) + 1
    return JobStats(
        total=len(jobs),
        active=counts[JobStatus.ACTIVE.value],
        draft=counts[JobStatus.DRAFT.value],
        paused=counts[JobStatus.PAUSED.value],
        closed=counts[JobStatus.CLOSED.value],
        total_views=sum(job.view_count or 0 for job in jobs),
        created_this_week=sum(1 for job in jobs if is_within_last_days(job.created_at, 7, now)),
    )


def build_dashboard(
    jobs: Sequence[Job], applications: Sequence[Application], now: datetime
) -> Dict[str, Any]:
    """Project loaded rows into the dashboard payload."""
    titles = {job.id: job.title for job in jobs}
    pending_by_job: Dict[int, int] = {}
    for application in applications:
        if _status_value(application.status) == ApplicationStatus.PENDING.value:
            pending_by_job[application.job_id] = pending_by_job.get(application.job_id, 0) + 1

    return {
        "applications": asdict(compute_application_stats(applications, now)),
        "jobs": asdict(compute_job_stats(jobs, now)),
        "jobs_needing_attention": [
            {"id": job.id, "title": job.title, "pending_count": pending_by_job.get(job.id, 0)}
            for job in jobs_needing_attention(jobs, applications)
        ],
        "top_candidates": [
            {
                "id": a.id,
                "job_id": a.job_id,
                "job_title": titles.get(a.job_id),
                "name": a.name,
                "email": a.email,
                "ai_rating": a.ai_rating,
                "pipeline_stage": a.pipeline_stage,
            }
            for a in top_candidates(applications)
        ],
        "generated_at": now.isoformat(),
    }


async def get_dashboard(
    session: AsyncSession, user_id: str, job_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Dashboard for a user's jobs, or for one job when job_id is given.

    Args:
        session: Database session
        user_id: Owner of the jobs
        job_id: Optional single job scope

    Returns:
        Dashboard payload (cached for DASHBOARD_CACHE_TTL seconds)
    """
    key = dashboard_key(user_id, job_id)
    if redis_cache.is_ready:
        cached = await redis_cache.get(key)
        if cached is not None:
            return cached

    job_query = select(Job).where(Job.user_id == user_id)
    if job_id is not None:
        job_query = job_query.where(Job.id == job_id)
    jobs = list((await session.execute(job_query)).scalars().all())

    applications: List[Application] = []
    if jobs:
        result = await session.execute(
            select(Application).where(Application.job_id.in_([job.id for job in jobs]))
        )
        applications = list(result.scalars().all())

    payload = build_dashboard(jobs, applications, utc_now())
    if redis_cache.is_ready:
        await redis_cache.set(key, payload, ttl=settings.dashboard_cache_ttl)
    return payload
