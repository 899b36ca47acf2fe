"""
AI scoring of applications.

A score is written only when the model returns a well-formed result; parse
and vendor failures leave the stored rating untouched. Batches run in
fixed-size concurrent groups with a pause between groups.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
import asyncio
import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agents.registry import registry
from agents.scoring.agent import ScoreOk, ScoringAgent
from core.cache import invalidate_dashboard
from core.config import settings
from core.middleware.error_handling import describe_persistence_error
from core.utils.datetime import now
from database.models.applications import Application
from database.models.jobs import Job

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]

STATUS_SCORED = "scored"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


@dataclass
class BatchSummary:
    """Counts for one batch run. successful + failed + skipped == processed."""

    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "results": self.results,
        }


def has_scorable_content(job: Job, application: Application) -> bool:
    """A job description and at least one written answer or cover letter are needed."""
    if not job.description or not job.description.strip():
        return False
    if application.cover_letter and application.cover_letter.strip():
        return True
    return bool(application.answers)


async def score_application(
    session: AsyncSession,
    application_id: int,
    agent: Optional[ScoringAgent] = None,
) -> Dict[str, Any]:
    """
    Score one application and store the rating and summary.

    Args:
        session: Database session
        application_id: Application to score
        agent: Scoring agent (a new one is created if omitted)

    Returns:
        Dictionary with status scored, skipped or error
    """
    application = await session.get(Application, application_id)
    if not application:
        return {"application_id": application_id, "status": STATUS_ERROR, "error": "Application not found"}
    job = await session.get(Job, application.job_id)
    if not job:
        return {"application_id": application_id, "status": STATUS_ERROR, "error": "Job not found"}

    if not has_scorable_content(job, application):
        logger.info(f"Skipping scoring for application {application_id}: nothing to evaluate")
        return {
            "application_id": application_id,
            "status": STATUS_SKIPPED,
            "reason": "Job description or candidate answers are missing",
        }

    agent = agent or registry.get("scoring")
    try:
        result = await agent.score(job, application)
    except Exception as e:
        logger.error(f"Scoring call failed for application {application_id}: {type(e).__name__}: {e}")
        return {"application_id": application_id, "status": STATUS_ERROR, "error": "AI scoring failed"}

    if not isinstance(result, ScoreOk):
        logger.warning(f"Unusable score for application {application_id}: {result.reason}")
        return {"application_id": application_id, "status": STATUS_ERROR, "error": result.reason}

    job_id = application.job_id
    try:
        await session.execute(
            update(Application)
            .where(Application.id == application_id)
            .values(ai_rating=result.rating, ai_summary=result.summary, updated_at=now())
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        info = describe_persistence_error(e)
        logger.error(f"Failed to store score for application {application_id}: {info.code}")
        return {"application_id": application_id, "status": STATUS_ERROR, "error": info.message}

    await invalidate_dashboard(job_id)
    return {
        "application_id": application_id,
        "status": STATUS_SCORED,
        "rating": result.rating,
        "summary": result.summary,
    }


async def _score_in_own_session(
    session_factory: SessionFactory, application_id: int, agent: Optional[ScoringAgent]
) -> Dict[str, Any]:
    async with session_factory() as session:
        return await score_application(session, application_id, agent=agent)


async def score_batch(
    session_factory: SessionFactory,
    application_ids: Sequence[int],
    batch_size: Optional[int] = None,
    delay: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
    agent: Optional[ScoringAgent] = None,
) -> BatchSummary:
    """
    Score many applications in groups of batch_size, pausing delay seconds between groups.

    Items are independent: each commits its own write, and one failure does
    not affect the others. Setting cancel_event stops new groups from being
    dispatched; calls already in flight run to completion.

    Args:
        session_factory: Creates a fresh session per item
        application_ids: Applications to score
        batch_size: Group size (defaults to settings.scoring_batch_size)
        delay: Pause between groups in seconds (defaults to settings.scoring_batch_delay)
        cancel_event: Stops scheduling when set
        agent: Shared scoring agent

    Returns:
        BatchSummary; never raises for individual item failures
    """
    batch_size = max(1, batch_size or settings.scoring_batch_size)
    delay = settings.scoring_batch_delay if delay is None else delay
    ids = list(application_ids)
    summary = BatchSummary()

    for start in range(0, len(ids), batch_size):
        if cancel_event is not None and cancel_event.is_set():
            summary.cancelled = len(ids) - start
            logger.info(f"Batch scoring cancelled with {summary.cancelled} applications left")
            break

        group = ids[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(_score_in_own_session(session_factory, app_id, agent) for app_id in group),
            return_exceptions=True,
        )
        for app_id, outcome in zip(group, outcomes):
            summary.processed += 1
            if isinstance(outcome, BaseException):
                logger.error(f"Scoring application {app_id} raised {type(outcome).__name__}")
                outcome = {"application_id": app_id, "status": STATUS_ERROR, "error": str(outcome)}
            if outcome["status"] == STATUS_SCORED:
                summary.successful += 1
            elif outcome["status"] == STATUS_SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1
            summary.results.append(outcome)

        is_last = start + batch_size >= len(ids)
        if not is_last and delay > 0:
            if cancel_event is None:
                await asyncio.sleep(delay)
            else:
                try:
                    await asyncio.wait_for(cancel_event.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass

    logger.info(
        f"Batch scoring finished: {summary.successful} scored, {summary.failed} failed, "
        f"{summary.skipped} skipped, {summary.cancelled} cancelled"
    )
    return summary
