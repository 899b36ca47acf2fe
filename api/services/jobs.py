"""
Job service functions.

Creation with plan gating, status changes, view counting, AI content
generation and natural-language job search.
"""

from typing import Any, Dict, List, Optional, Sequence
import math
import re
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from agents.registry import registry
from agents.content.agent import ContentAgent, ContentKind
from agents.job_search.agent import BUDGET_CEILING, JobSearchAgent, SearchFilters, SearchQuery, fallback_query
from api.services.subscriptions import can_create_job, get_subscription
from core.cache import invalidate_dashboard
from core.utils.datetime import now
from database.models.applications import Application
from database.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    "required_skills",
    "role_type",
    "employment_type",
    "experience_level",
    "location_type",
    "city",
    "state",
    "country",
    "budget",
    "duration",
    "company_name",
)

# Generated content kind -> column it is stored in
CONTENT_FIELDS = {
    ContentKind.JOB_POST: "generated_job_post",
    ContentKind.SKILLS_TEST: "generated_test",
    ContentKind.INTERVIEW_QUESTIONS: "generated_interview_questions",
    ContentKind.MINI_DESCRIPTION: "ai_mini_description",
}


def job_to_dict(job: Job) -> Dict[str, Any]:
    return {
        "id": job.id,
        "user_id": job.user_id,
        "title": job.title,
        "description": job.description,
        "required_skills": job.required_skills,
        "role_type": job.role_type,
        "employment_type": job.employment_type,
        "experience_level": job.experience_level,
        "location_type": job.location_type,
        "city": job.city,
        "state": job.state,
        "country": job.country,
        "budget": job.budget,
        "duration": job.duration,
        "company_name": job.company_name,
        "status": job.status.value if hasattr(job.status, "value") else str(job.status),
        "generated_job_post": job.generated_job_post,
        "generated_test": job.generated_test,
        "generated_interview_questions": job.generated_interview_questions,
        "ai_mini_description": job.ai_mini_description,
        "view_count": job.view_count,
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "updated_at": job.updated_at.isoformat() if job.updated_at else None,
    }


async def count_open_jobs(session: AsyncSession, user_id: str) -> int:
    """Jobs counted against the plan ceiling: everything not closed."""
    result = await session.execute(
        select(func.count(Job.id)).where(Job.user_id == user_id, Job.status != JobStatus.CLOSED)
    )
    return result.scalar_one()


async def create_job(session: AsyncSession, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a draft job.

    Args:
        session: Database session
        user_id: Owner
        data: Job fields (title and description required)

    Returns:
        Dictionary with success status and the created job
    """
    title = (data.get("title") or "").strip()
    description = (data.get("description") or "").strip()
    if not title or not description:
        return {"success": False, "error": "Title and description are required"}

    subscription = await get_subscription(session, user_id)
    if not can_create_job(subscription, await count_open_jobs(session, user_id), now()):
        return {"success": False, "error": "Job limit reached for your plan"}

    job = Job(
        user_id=user_id,
        title=title,
        description=description,
        status=JobStatus.DRAFT,
        **{field: data[field] for field in JOB_FIELDS if data.get(field) is not None},
    )
    session.add(job)
    if subscription is not None:
        subscription.job_count = (subscription.job_count or 0) + 1
    await session.commit()
    await session.refresh(job)

    logger.info(f"Created job {job.id} for user {user_id}")
    await invalidate_dashboard(job.id)
    return {"success": True, "job": job_to_dict(job)}


async def get_job(session: AsyncSession, job_id: int) -> Optional[Dict[str, Any]]:
    """Get job details with its application count."""
    job = await session.get(Job, job_id)
    if not job:
        return None
    count = await session.execute(
        select(func.count(Application.id)).where(Application.job_id == job_id)
    )
    return {**job_to_dict(job), "application_count": count.scalar() or 0}


async def list_jobs(
    session: AsyncSession, user_id: str, status: Optional[str] = None
) -> List[Dict[str, Any]]:
    query = select(Job).where(Job.user_id == user_id)
    if status:
        query = query.where(Job.status == JobStatus(status))
    result = await session.execute(query.order_by(Job.created_at.desc(), Job.id.desc()))
    return [job_to_dict(job) for job in result.scalars().all()]


async def update_job_status(session: AsyncSession, job_id: int, status: str) -> Dict[str, Any]:
    """
    Change a job's status (draft, active, paused or closed).

    Returns:
        Dictionary with success status and the updated job
    """
    try:
        new_status = JobStatus(status)
    except ValueError:
        return {"success": False, "error": f"Invalid job status: {status}"}

    job = await session.get(Job, job_id)
    if not job:
        return {"success": False, "error": "Job not found"}

    job.status = new_status
    await session.commit()
    await session.refresh(job)
    logger.info(f"Job {job_id} status set to {new_status.value}")
    await invalidate_dashboard(job_id)
    return {"success": True, "job": job_to_dict(job)}


async def close_job(session: AsyncSession, job_id: int) -> Dict[str, Any]:
    return await update_job_status(session, job_id, JobStatus.CLOSED.value)


async def increment_view_count(session: AsyncSession, job_id: int) -> bool:
    """Atomically add one view; False if the job does not exist."""
    result = await session.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(view_count=Job.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return bool(result.rowcount)


async def generate_job_content(
    session: AsyncSession,
    job_id: int,
    kind: str,
    agent: Optional[ContentAgent] = None,
) -> Dict[str, Any]:
    """
    Generate one kind of AI content for a job and store it.

    Args:
        session: Database session
        job_id: Job to generate for
        kind: job_post, skills_test, interview_questions or mini_description
        agent: Content agent

    Returns:
        Dictionary with success status and the generated content
    """
    try:
        content_kind = ContentKind(kind)
    except ValueError:
        return {"success": False, "error": f"Unknown content kind: {kind}"}

    job = await session.get(Job, job_id)
    if not job:
        return {"success": False, "error": "Job not found"}

    agent = agent or registry.get("content")
    try:
        content = await agent.generate(job, content_kind)
    except Exception as e:
        logger.error(f"Content generation failed for job {job_id}: {type(e).__name__}: {e}")
        return {"success": False, "error": "AI content generation failed"}

    if not content:
        return {"success": False, "error": "AI returned no content"}

    setattr(job, CONTENT_FIELDS[content_kind], content)
    await session.commit()
    return {"success": True, "job_id": job_id, "kind": content_kind.value, "content": content}


# ==================== Search ==================== #

def parse_budget(budget: Optional[str], employment_type: str = "") -> float:
    """
    Read a free-text budget such as "$85,000", "90k" or "45/hr" as a number.

    Small amounts on full-time and part-time roles are treated as hourly
    rates and annualized. Unparseable budgets are 0.
    """
    if not budget or not budget.strip():
        return 0.0
    cleaned = re.sub(r"[^\d.,kK]", "", budget)
    try:
        if "k" in cleaned.lower():
            return float(re.sub(r"[kK,]", "", cleaned)) * 1000
        amount = float(cleaned.replace(",", ""))
    except ValueError:
        return 0.0
    if employment_type in ("full-time", "part-time") and amount < 1000:
        return amount * (2000 if employment_type == "full-time" else 1000)
    return amount


def matches_search_term(job: Job, search_term: str) -> bool:
    """At least 60% of the search words (and at least one) must appear in the job text."""
    words = (search_term or "").lower().split()
    if not words:
        return True
    content = " ".join(
        value or ""
        for value in (
            job.title, job.description, job.required_skills, job.role_type,
            job.city, job.state, job.country,
        )
    ).lower()
    content_words = content.split()

    def matches(word: str) -> bool:
        if word in content:
            return True
        if len(word) <= 3:
            return False
        return any(
            word in other
            or other in word
            or (len(other) > 3 and (other.startswith(word[:4]) or word.startswith(other[:4])))
            for other in content_words
        )

    required = max(1, math.ceil(len(words) * 0.6))
    return sum(1 for word in words if matches(word)) >= required


def _matches(value: Optional[str], wanted: str) -> bool:
    return wanted == "all" or (value or "").lower() == wanted.lower()


def job_matches_filters(job: Job, filters: SearchFilters, strict: bool = True) -> bool:
    """
    Apply structured filters. With strict=False only the filters that
    identify the kind of job are kept (budget and duration are ignored).
    """
    employment = job.employment_type or job.role_type
    if not _matches(employment, filters.employmentType):
        return False
    if not _matches(job.location_type, filters.locationType):
        return False
    if not _matches(job.experience_level, filters.experienceLevel):
        return False
    if not _matches(job.country, filters.country) or not _matches(job.state, filters.state):
        return False
    if not strict:
        return True

    if not _matches(job.duration, filters.duration):
        return False
    low, high = filters.budgetRange
    if low == 0 and high >= BUDGET_CEILING:
        return True
    amount = parse_budget(job.budget, employment)
    return amount == 0 or (amount >= low and (high >= BUDGET_CEILING or amount <= high))


def filter_jobs(jobs: Sequence[Job], query: SearchQuery) -> List[Job]:
    """
    Text search plus filters, progressively relaxed when too little matches.
    """
    term = query.searchTerm
    filters = query.filters
    results = [j for j in jobs if matches_search_term(j, term) and job_matches_filters(j, filters)]
    if len(results) >= 5 or not term:
        return results

    relaxed = [j for j in jobs if matches_search_term(j, term) and job_matches_filters(j, filters, strict=False)]
    if len(relaxed) > len(results):
        results = relaxed
    if len(results) < 3:
        relaxed = [
            j for j in jobs
            if matches_search_term(j, term) and _matches(j.employment_type or j.role_type, filters.employmentType)
        ]
        if len(relaxed) > len(results):
            results = relaxed
    if len(results) < 2:
        relaxed = [j for j in jobs if matches_search_term(j, term)]
        if len(relaxed) > len(results):
            results = relaxed
    return results


async def search_jobs(
    session: AsyncSession, query: str, agent: Optional[JobSearchAgent] = None
) -> Dict[str, Any]:
    """
    Search active jobs with a natural-language query.

    Args:
        session: Database session
        query: Free-text search
        agent: Job search agent that turns the query into filters

    Returns:
        Dictionary with the interpreted query and matching jobs
    """
    result = await session.execute(
        select(Job).where(Job.status == JobStatus.ACTIVE).order_by(Job.created_at.desc(), Job.id.desc())
    )
    jobs = list(result.scalars().all())

    options = {
        "roleTypes": sorted({j.role_type for j in jobs if j.role_type}),
        "experienceLevels": sorted({j.experience_level for j in jobs if j.experience_level}),
        "employmentTypes": sorted({j.employment_type for j in jobs if j.employment_type}),
    }
    agent = agent or registry.get("job_search")
    try:
        parsed = await agent.parse_query(query, options)
    except Exception as e:
        logger.warning(f"AI job search unavailable, using text search: {type(e).__name__}")
        parsed = fallback_query(query)

    matched = filter_jobs(jobs, parsed)
    return {
        "query": parsed.model_dump(),
        "jobs": [job_to_dict(job) for job in matched],
        "total": len(matched),
    }
