"""Resume parsing tasks."""

from celery import Task

from api.services import resumes as resume_service
from database.engine import AsyncSessionLocal
from workers.celery_app import celery_app, run_async


@celery_app.task(name="workers.tasks.resumes.parse_application_resume", bind=True)
def parse_application_resume(self: Task, application_id: int) -> dict:
    """Extract structured fields from an application's stored resume."""

    async def _work():
        async with AsyncSessionLocal() as session:
            return await resume_service.parse_resume(session, application_id)

    return run_async(_work)
