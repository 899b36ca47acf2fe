"""AI scoring tasks."""

import logging

from celery import Task

from api.services import scoring as scoring_service
from api.services.applications import get_applications_for_job
from database.engine import AsyncSessionLocal
from workers.celery_app import celery_app, run_async

logger = logging.getLogger(__name__)


@celery_app.task(name="workers.tasks.scoring.score_application", bind=True)
def score_application(self: Task, application_id: int) -> dict:
    """Score one application with the AI scoring agent.

    Args:
        application_id: Application to score

    Returns:
        Dictionary with the scoring status
    """

    async def _work():
        async with AsyncSessionLocal() as session:
            return await scoring_service.score_application(session, application_id)

    return run_async(_work)


@celery_app.task(name="workers.tasks.scoring.rescore_job", bind=True)
def rescore_job(self: Task, job_id: int) -> dict:
    """Rescore every application on a job in rate-limited groups.

    Args:
        job_id: Job whose applications are rescored

    Returns:
        Batch summary of the run
    """

    async def _work():
        async with AsyncSessionLocal() as session:
            applications = await get_applications_for_job(session, job_id)
            application_ids = [a.id for a in applications]
        summary = await scoring_service.score_batch(AsyncSessionLocal, application_ids)
        logger.info(
            f"Rescored job {job_id}: {summary.successful} scored, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return {"job_id": job_id, **summary.to_dict()}

    return run_async(_work)
