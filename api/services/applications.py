"""
Application service functions for API endpoints.

Candidate intake, lookup and listing, plus the manual rating that moves an
application between pending and reviewed.
"""

from typing import Any, Dict, List, Optional
import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.subscriptions import can_create_application, get_subscription
from core.cache import invalidate_dashboard
from core.utils.datetime import now, start_of_month
from core.utils.sql import LIKE_ESCAPE, like_pattern
from database.models.applications import (
    INITIAL_STAGE,
    Application,
    ApplicationStatus,
)
from database.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)

INTAKE_FIELDS = (
    "phone",
    "location",
    "linkedin_url",
    "github_url",
    "portfolio_url",
    "available_start_date",
    "experience",
    "cover_letter",
    "answer_1",
    "answer_2",
    "answer_3",
    "resume_file_path",
)

SORT_ORDERS = {
    "newest": (Application.created_at.desc(), Application.id.desc()),
    "oldest": (Application.created_at.asc(), Application.id.asc()),
    "rating": (Application.ai_rating.desc().nulls_last(), Application.id.desc()),
    "name": (Application.name.asc(), Application.id.asc()),
}


def application_to_dict(application: Application) -> Dict[str, Any]:
    """Serialize an application for API responses."""
    return {
        "id": application.id,
        "job_id": application.job_id,
        "name": application.name,
        "email": application.email,
        "phone": application.phone,
        "location": application.location,
        "linkedin_url": application.linkedin_url,
        "github_url": application.github_url,
        "portfolio_url": application.portfolio_url,
        "available_start_date": application.available_start_date,
        "experience": application.experience,
        "cover_letter": application.cover_letter,
        "answers": application.answers,
        "resume_file_path": application.resume_file_path,
        "parsed_resume_data": application.parsed_resume_data,
        "work_experience": application.work_experience,
        "education": application.education,
        "skills": application.skills,
        "ai_rating": application.ai_rating,
        "ai_summary": application.ai_summary,
        "manual_rating": application.manual_rating,
        "status": application.status.value,
        "pipeline_stage": application.pipeline_stage,
        "previous_pipeline_stage": application.previous_pipeline_stage,
        "rejection_reason": application.rejection_reason,
        "created_at": application.created_at.isoformat() if application.created_at else None,
        "updated_at": application.updated_at.isoformat() if application.updated_at else None,
    }


async def count_applications_this_month(session: AsyncSession, user_id: str) -> int:
    """Applications received this calendar month across all of a user's jobs."""
    result = await session.execute(
        select(func.count(Application.id))
        .join(Job, Job.id == Application.job_id)
        .where(Job.user_id == user_id, Application.created_at >= start_of_month(now()))
    )
    return result.scalar_one()


async def create_application(
    session: AsyncSession, job_id: int, data: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Record a candidate's application to a job.

    Args:
        session: Database session
        job_id: Job being applied to
        data: Intake form fields (name and email required)

    Returns:
        Dictionary with success status and the created application
    """
    name = (data.get("name") or "").strip()
    if not name:
        return {"success": False, "error": "Name is required"}
    try:
        email = validate_email(data.get("email") or "", check_deliverability=False).normalized
    except EmailNotValidError as e:
        return {"success": False, "error": f"Invalid email: {e}"}

    job = await session.get(Job, job_id)
    if not job:
        return {"success": False, "error": "Job not found"}
    if job.status != JobStatus.ACTIVE:
        return {"success": False, "error": "Job is not accepting applications"}

    subscription = await get_subscription(session, job.user_id)
    received = await count_applications_this_month(session, job.user_id)
    if not can_create_application(subscription, received, now()):
        logger.info(f"Application ceiling reached for user {job.user_id}")
        return {"success": False, "error": "This job is not accepting more applications right now"}

    application = Application(
        job_id=job_id,
        name=name,
        email=email,
        status=ApplicationStatus.PENDING,
        pipeline_stage=INITIAL_STAGE,
        **{field: data.get(field) for field in INTAKE_FIELDS if data.get(field) is not None},
    )
    session.add(application)
    if subscription is not None:
        subscription.applications_count = (subscription.applications_count or 0) + 1
    await session.commit()
    await session.refresh(application)

    logger.info(f"Created application {application.id} for job {job_id}")
    await invalidate_dashboard(job_id)
    return {"success": True, "application": application_to_dict(application)}


async def get_application(session: AsyncSession, application_id: int) -> Optional[Dict[str, Any]]:
    """
    Get detailed information about an application.

    Args:
        session: Database session
        application_id: The application ID

    Returns:
        Dictionary containing application details, or None if not found
    """
    application = await session.get(Application, application_id)
    if not application:
        return None
    return application_to_dict(application)


async def list_applications(
    session: AsyncSession,
    job_id: Optional[int] = None,
    status: Optional[str] = None,
    stage: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "newest",
    page: int = 1,
    page_size: int = 20,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    List applications with filters and pagination.

    Args:
        session: Database session
        job_id: Restrict to one job
        status: Filter by status value
        stage: Filter by pipeline stage
        search: Case-insensitive match on candidate name or email
        sort: newest, oldest, rating or name
        page: 1-based page number
        page_size: Items per page
        user_id: Restrict to jobs owned by this user

    Returns:
        Dictionary with items, total and paging info
    """
    if sort not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {sort}")

    query = select(Application)
    if user_id is not None:
        query = query.join(Job, Job.id == Application.job_id).where(Job.user_id == user_id)
    if job_id is not None:
        query = query.where(Application.job_id == job_id)
    if status:
        query = query.where(Application.status == ApplicationStatus(status))
    if stage:
        query = query.where(Application.pipeline_stage == stage)
    if search and search.strip():
        pattern = like_pattern(search.strip().lower())
        query = query.where(
            or_(
                func.lower(Application.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Application.email).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = (
        await session.execute(select(func.count()).select_from(query.subquery()))
    ).scalar_one()

    offset = (page - 1) * page_size
    rows = (
        await session.execute(query.order_by(*SORT_ORDERS[sort]).offset(offset).limit(page_size))
    ).scalars().all()

    return {
        "items": [application_to_dict(a) for a in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size if page_size else 0,
    }


async def update_manual_rating(
    session: AsyncSession, application_id: int, rating: Optional[int]
) -> Dict[str, Any]:
    """
    Set or clear the reviewer's manual rating.

    A rating marks the application reviewed and clearing it puts it back to
    pending. Rejected and approved applications keep their status.

    Args:
        session: Database session
        application_id: The application ID
        rating: 1-5, or None to clear

    Returns:
        Dictionary with success status and the updated application
    """
    if rating is not None and not 1 <= rating <= 5:
        return {"success": False, "error": "Rating must be between 1 and 5"}

    application = await session.get(Application, application_id)
    if not application:
        return {"success": False, "error": "Application not found"}

    application.manual_rating = rating
    if application.status in (ApplicationStatus.PENDING, ApplicationStatus.REVIEWED):
        application.status = (
            ApplicationStatus.REVIEWED if rating is not None else ApplicationStatus.PENDING
        )
    await session.commit()
    await session.refresh(application)

    await invalidate_dashboard(application.job_id)
    return {"success": True, "application": application_to_dict(application)}


async def get_applications_for_job(session: AsyncSession, job_id: int) -> List[Application]:
    result = await session.execute(
        select(Application).where(Application.job_id == job_id).order_by(Application.id)
    )
    return list(result.scalars().all())
