"""Email sending tasks."""

from typing import List, Optional

from celery import Task

from api.services import emails as email_service
from database.engine import AsyncSessionLocal
from workers.celery_app import celery_app, run_async


@celery_app.task(name="workers.tasks.emails.send_bulk_email", bind=True)
def send_bulk_email(
    self: Task,
    user_id: str,
    recipients: List[dict],
    subject: str,
    content: str,
    template_id: Optional[int] = None,
    thread_id: Optional[int] = None,
    create_thread: bool = False,
    company_name: Optional[str] = None,
) -> dict:
    """Send an email to each recipient individually.

    Per-recipient failures are reported in the result, not retried; a retry
    would resend to the recipients that already succeeded.

    Args:
        user_id: Sending user
        recipients: EmailRecipient fields as dicts
        subject: Subject template
        content: Body template

    Returns:
        Dictionary with sent/failed counts and per-recipient results
    """

    async def _work():
        async with AsyncSessionLocal() as session:
            return await email_service.send_bulk_email(
                session,
                user_id,
                [email_service.EmailRecipient(**r) for r in recipients],
                subject,
                content,
                template_id=template_id,
                thread_id=thread_id,
                create_thread=create_thread,
                company_name=company_name,
            )

    return run_async(_work)
