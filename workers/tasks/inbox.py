"""Periodic inbox maintenance."""

import logging

from celery import Task

from api.services import inbox as inbox_service
from database.engine import AsyncSessionLocal
from workers.celery_app import celery_app, run_async

logger = logging.getLogger(__name__)


@celery_app.task(name="workers.tasks.inbox.reconcile_inbox", bind=True)
def reconcile_inbox(self: Task, since_hours: int = 24) -> dict:
    """Drop duplicate inbound deliveries, then re-derive every unread counter."""

    async def _work():
        async with AsyncSessionLocal() as session:
            duplicates = await inbox_service.remove_duplicate_inbound(session, since_hours=since_hours)
            reconciled = await inbox_service.reconcile_unread_counts(session)
        logger.info(
            f"Inbox maintenance removed {duplicates['deleted']} duplicates, "
            f"corrected {reconciled['count']} threads"
        )
        return {"deleted": duplicates["deleted"], "corrected": reconciled["count"]}

    return run_async(_work)
