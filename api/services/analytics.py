"""
Hiring analytics.

Like the dashboard, the compute_* functions are pure and take an explicit
``now``. A hire is an application whose pipeline stage is "hired".
Rates are percentages rounded to one decimal.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.dashboard import _status_value
from core.utils.datetime import as_utc, is_within_last_days, now as utc_now, start_of_month
from database.models.applications import HIRED_STAGE, Application, ApplicationStatus
from database.models.jobs import Job

logger = logging.getLogger(__name__)

TREND_DAYS = 30
TOP_JOB_MIN_APPLICATIONS = 5


@dataclass(frozen=True)
class TrendPoint:
    date: str
    applications: int = 0
    hired: int = 0
    average_rating: float = 0.0


@dataclass(frozen=True)
class JobPerformance:
    job_id: int
    job_title: str
    applications: int = 0
    hired: int = 0
    hire_rate: float = 0.0
    average_rating: float = 0.0


def is_hired(application: Application) -> bool:
    return application.pipeline_stage == HIRED_STAGE


def _rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)


def compute_trend(
    applications: Sequence[Application], now: datetime, days: int = TREND_DAYS
) -> List[TrendPoint]:
    """
    Daily application and hire counts for the trailing ``days`` UTC days, oldest first.

    Every day in the window gets a point, including days with no
    applications. average_rating counts unrated applications as 0.
    """
    today = as_utc(now).date()
    first = today - timedelta(days=days - 1)
    buckets: Dict[date, List[Application]] = {first + timedelta(days=i): [] for i in range(days)}
    for application in applications:
        if application.created_at is None:
            continue
        day = as_utc(application.created_at).date()
        if day in buckets:
            buckets[day].append(application)

    points = []
    for day, rows in buckets.items():
        ratings = sum(a.ai_rating or 0 for a in rows)
        points.append(
            TrendPoint(
                date=day.isoformat(),
                applications=len(rows),
                hired=sum(1 for a in rows if is_hired(a)),
                average_rating=round(ratings / len(rows), 2) if rows else 0.0,
            )
        )
    return points


def compute_job_performance(
    jobs: Sequence[Job], applications: Sequence[Application]
) -> List[JobPerformance]:
    """
    Per-job application volume, hire rate and average AI rating.

    average_rating only looks at rated applications. Sorted by application
    count, busiest first.
    """
    by_job: Dict[int, List[Application]] = {job.id: [] for job in jobs}
    for application in applications:
        by_job.setdefault(application.job_id, []).append(application)

    performance = []
    for job in jobs:
        rows = by_job[job.id]
        hired = sum(1 for a in rows if is_hired(a))
        ratings = [a.ai_rating for a in rows if a.ai_rating is not None]
        performance.append(
            JobPerformance(
                job_id=job.id,
                job_title=job.title,
                applications=len(rows),
                hired=hired,
                hire_rate=_rate(hired, len(rows)),
                average_rating=round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
            )
        )
    return sorted(performance, key=lambda p: (-p.applications, p.job_id))


def top_performing_job(
    performance: Sequence[JobPerformance], minimum: int = TOP_JOB_MIN_APPLICATIONS
) -> Optional[JobPerformance]:
    """Highest hire rate among jobs with at least ``minimum`` applications; ties go to the busier job."""
    eligible = [p for p in performance if p.applications >= minimum]
    if not eligible:
        return None
    return max(eligible, key=lambda p: (p.hire_rate, p.applications))


def build_analytics(
    jobs: Sequence[Job], applications: Sequence[Application], now: datetime
) -> Dict[str, Any]:
    """Project loaded rows into the analytics payload."""
    total = len(applications)
    hired = sum(1 for a in applications if is_hired(a))
    hire_rate = _rate(hired, total)
    month_start = start_of_month(now)

    pipeline = {status.value: 0 for status in ApplicationStatus}
    for application in applications:
        key = _status_value(application.status)
        pipeline[key] = pipeline.get(key, 0) + 1

    performance = compute_job_performance(jobs, applications)
    top = top_performing_job(performance)
    return {
        "total_jobs": len(jobs),
        "total_applications": total,
        "hired_count": hired,
        "hire_rate": hire_rate,
        # Applied to hired; the only conversion tracked today
        "conversion_rate": hire_rate,
        "average_rating": round(sum(a.ai_rating or 0 for a in applications) / total, 2) if total else 0.0,
        "applications_this_week": sum(
            1 for a in applications if is_within_last_days(a.created_at, 7, now)
        ),
        "applications_this_month": sum(
            1 for a in applications
            if a.created_at is not None and as_utc(a.created_at) >= month_start
        ),
        "pipeline": {**pipeline, "total": total},
        "top_performing_job": asdict(top) if top else None,
        "trend": [asdict(point) for point in compute_trend(applications, now)],
        "job_performance": [asdict(p) for p in performance],
        "generated_at": now.isoformat(),
    }


async def get_analytics(
    session: AsyncSession, user_id: str, job_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Hiring analytics over a user's jobs, or over one job when job_id is given.

    Args:
        session: Database session
        user_id: Owner of the jobs
        job_id: Optional single job scope

    Returns:
        Analytics payload
    """
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

    logger.debug(f"Computing analytics for user {user_id}: {len(jobs)} jobs, {len(applications)} applications")
    return build_analytics(jobs, applications, utc_now())
