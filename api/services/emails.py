"""
Email composition and sending.

One vendor request per recipient, every attempt logged to email_logs. When
threads are requested the thread row is committed first and the outbound
message stored before the send; if storing the message fails the empty
thread is left in place.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.templates import (
    DEFAULT_COMPANY_NAME,
    RecipientContext,
    format_email_html,
    rejection_template,
    render_template,
)
from core.config import settings
from core.integrations.email import EmailClient, EmailSendResult, get_email_client
from core.middleware.error_handling import describe_persistence_error
from core.utils.datetime import now
from database.models.applications import Application
from database.models.communications import (
    EmailLog,
    EmailLogStatus,
    EmailMessage,
    EmailThread,
    MessageDirection,
    ThreadStatus,
)
from database.models.jobs import Job
from database.models.users import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailRecipient:
    """One addressee of a bulk send."""

    email: str
    name: str = ""
    application_id: Optional[int] = None
    job_id: Optional[int] = None
    position: str = ""


@dataclass(frozen=True)
class StepResult:
    """Outcome of one independent step of a multi-step operation."""

    ok: bool
    error: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


async def _get_profile(session: AsyncSession, user_id: str) -> Optional[Profile]:
    return await session.get(Profile, user_id)


def resolve_company_name(
    job: Optional[Job], profile: Optional[Profile], override: Optional[str] = None
) -> str:
    """Explicit override, then the job's company, then the profile's, then a generic name."""
    for candidate in (
        override,
        job.company_name if job else None,
        profile.company_name if profile else None,
    ):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_COMPANY_NAME


def resolve_sender(profile: Optional[Profile], override: Optional[str] = None) -> str:
    """Reply-to/sender address: explicit override, the user's inbox address, or the default."""
    if override:
        return override
    if profile and profile.unique_email:
        return profile.unique_email
    return settings.from_email


async def _log_attempt(
    session: AsyncSession,
    *,
    user_id: str,
    recipient: EmailRecipient,
    subject: str,
    content: str,
    template_id: Optional[int],
    thread_id: Optional[int],
    result: EmailSendResult,
) -> None:
    """Write one email_logs row; a logging failure is reported but never raised."""
    session.add(
        EmailLog(
            user_id=user_id,
            application_id=recipient.application_id,
            thread_id=thread_id,
            recipient_email=recipient.email,
            recipient_name=recipient.name,
            subject=subject,
            content=content,
            template_id=template_id,
            status=EmailLogStatus.SENT if result.ok else EmailLogStatus.FAILED,
            error_message=result.error,
            sent_at=now() if result.ok else None,
        )
    )
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to log email to {recipient.email}: {type(e).__name__}")


async def _create_thread(
    session: AsyncSession,
    user_id: str,
    subject: str,
    sender: str,
    recipient: EmailRecipient,
) -> EmailThread:
    thread = EmailThread(
        user_id=user_id,
        application_id=recipient.application_id,
        job_id=recipient.job_id,
        subject=subject,
        participants=[sender, recipient.email],
        reply_to_email=sender,
        status=ThreadStatus.ACTIVE,
        unread_count=0,
        last_message_at=now(),
    )
    session.add(thread)
    await session.commit()
    return thread


async def _store_outbound_message(
    session: AsyncSession,
    thread_id: int,
    sender: str,
    recipient: EmailRecipient,
    subject: str,
    content: str,
) -> None:
    session.add(
        EmailMessage(
            thread_id=thread_id,
            direction=MessageDirection.OUTBOUND,
            sender_email=sender,
            recipient_email=recipient.email,
            subject=subject,
            content=content,
            message_type="original",
            is_read=True,
        )
    )
    thread = await session.get(EmailThread, thread_id)
    if thread is not None:
        thread.last_message_at = now()
    await session.commit()


async def send_bulk_email(
    session: AsyncSession,
    user_id: str,
    recipients: List[EmailRecipient],
    subject: str,
    content: str,
    template_id: Optional[int] = None,
    thread_id: Optional[int] = None,
    create_thread: bool = False,
    company_name: Optional[str] = None,
    reply_to_email: Optional[str] = None,
    client: Optional[EmailClient] = None,
) -> Dict[str, Any]:
    """
    Render and send an email to each recipient individually.

    Args:
        session: Database session
        user_id: Sending user
        recipients: Addressees with their template values
        subject: Subject template
        content: Body template (plain text)
        template_id: Template the content came from, for the log
        thread_id: Existing thread to append to
        create_thread: Create one thread per recipient when no thread_id is given
        company_name: Overrides the profile's company name
        reply_to_email: Overrides the profile's inbox address
        client: Email vendor client

    Returns:
        Dictionary with per-recipient results and sent/failed counts
    """
    if not recipients:
        return {"success": False, "error": "No recipients provided"}
    if not subject or not subject.strip() or not content or not content.strip():
        return {"success": False, "error": "Subject and content are required"}

    client = client or get_email_client()
    profile = await _get_profile(session, user_id)
    sender = resolve_sender(profile, reply_to_email)
    company = company_name or (profile.company_name if profile and profile.company_name else DEFAULT_COMPANY_NAME)

    results: List[Dict[str, Any]] = []
    for recipient in recipients:
        context = RecipientContext(
            name=recipient.name,
            email=recipient.email,
            position=recipient.position,
            company=company,
        )
        rendered_subject = render_template(subject, context)
        rendered_content = render_template(content, context)
        recipient_thread_id = thread_id

        if create_thread and recipient_thread_id is None:
            try:
                thread = await _create_thread(session, user_id, rendered_subject, sender, recipient)
            except SQLAlchemyError as e:
                await session.rollback()
                info = describe_persistence_error(e)
                logger.error(f"Failed to create thread for {recipient.email}: {info.code}")
                results.append({"email": recipient.email, "success": False, "error": info.message})
                continue
            recipient_thread_id = thread.id

        final_subject = (
            f"{rendered_subject} [Thread:{recipient_thread_id}]"
            if recipient_thread_id is not None
            else rendered_subject
        )

        if recipient_thread_id is not None:
            try:
                await _store_outbound_message(
                    session, recipient_thread_id, sender, recipient, final_subject, rendered_content
                )
            except SQLAlchemyError as e:
                await session.rollback()
                info = describe_persistence_error(e)
                logger.error(
                    f"Failed to store message in thread {recipient_thread_id}: {info.code}"
                )
                failure = EmailSendResult(ok=False, error=f"Message not stored: {info.message}")
                await _log_attempt(
                    session,
                    user_id=user_id,
                    recipient=recipient,
                    subject=final_subject,
                    content=rendered_content,
                    template_id=template_id,
                    thread_id=recipient_thread_id,
                    result=failure,
                )
                results.append({
                    "email": recipient.email,
                    "success": False,
                    "thread_id": recipient_thread_id,
                    "error": failure.error,
                })
                continue

        send_result = await client.send(
            to_email=recipient.email,
            to_name=recipient.name,
            subject=final_subject,
            html=format_email_html(rendered_content),
            reply_to=sender,
            text=rendered_content,
        )
        await _log_attempt(
            session,
            user_id=user_id,
            recipient=recipient,
            subject=final_subject,
            content=rendered_content,
            template_id=template_id,
            thread_id=recipient_thread_id,
            result=send_result,
        )
        results.append({
            "email": recipient.email,
            "success": send_result.ok,
            "thread_id": recipient_thread_id,
            "message_id": send_result.message_id,
            "error": send_result.error,
        })

    sent = sum(1 for r in results if r["success"])
    logger.info(f"Bulk email completed: {sent}/{len(recipients)} sent")
    return {
        "success": sent == len(recipients),
        "sent": sent,
        "failed": len(recipients) - sent,
        "results": results,
    }


async def send_rejection_email(
    session: AsyncSession,
    application_id: int,
    reason: str,
    user_id: Optional[str] = None,
    client: Optional[EmailClient] = None,
) -> StepResult:
    """
    Send the reason-specific rejection email for an application, once.

    Vendor and lookup failures are returned as StepResult(ok=False); nothing
    is raised, so callers can carry on with the state change.

    Args:
        session: Database session
        application_id: Application being rejected
        reason: Rejection reason, selects the template body
        user_id: Sending user (defaults to the job owner)
        client: Email vendor client

    Returns:
        StepResult for the notification step
    """
    application = await session.get(Application, application_id)
    if application is None:
        return StepResult(ok=False, error="Application not found")
    job = await session.get(Job, application.job_id)
    if job is None:
        return StepResult(ok=False, error="Job not found")

    owner_id = user_id or job.user_id
    profile = await _get_profile(session, owner_id)
    subject_template, body_template = rejection_template(reason)
    context = RecipientContext(
        name=application.name,
        email=application.email,
        position=job.title,
        company=resolve_company_name(job, profile),
    )
    subject = render_template(subject_template, context)
    content = render_template(body_template, context)

    client = client or get_email_client()
    try:
        result = await client.send(
            to_email=application.email,
            to_name=application.name,
            subject=subject,
            html=format_email_html(content),
            reply_to=resolve_sender(profile),
            text=content,
        )
    except Exception as e:
        logger.error(f"Rejection email for application {application_id} raised: {type(e).__name__}: {e}")
        result = EmailSendResult(ok=False, error=str(e))

    await _log_attempt(
        session,
        user_id=owner_id,
        recipient=EmailRecipient(
            email=application.email, name=application.name, application_id=application.id
        ),
        subject=subject,
        content=content,
        template_id=None,
        thread_id=None,
        result=result,
    )

    if not result.ok:
        logger.warning(f"Rejection email for application {application_id} failed: {result.error}")
        return StepResult(ok=False, error=result.error)
    return StepResult(ok=True, detail={"message_id": result.message_id})


async def list_email_logs(
    session: AsyncSession, user_id: str, application_id: Optional[int] = None, limit: int = 50
) -> List[Dict[str, Any]]:
    """Most recent send attempts for a user, optionally for one application."""
    query = select(EmailLog).where(EmailLog.user_id == user_id)
    if application_id is not None:
        query = query.where(EmailLog.application_id == application_id)
    query = query.order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).limit(limit)
    rows = (await session.execute(query)).scalars().all()
    return [
        {
            "id": log.id,
            "recipient_email": log.recipient_email,
            "subject": log.subject,
            "status": log.status.value,
            "error_message": log.error_message,
            "sent_at": log.sent_at.isoformat() if log.sent_at else None,
        }
        for log in rows
    ]


async def recipients_for_applications(
    session: AsyncSession, application_ids: List[int], user_id: Optional[str] = None
) -> List[EmailRecipient]:
    """Build recipients from applications, with the job title as {position}."""
    if not application_ids:
        return []
    query = (
        select(Application, Job.title)
        .join(Job, Job.id == Application.job_id)
        .where(Application.id.in_(application_ids))
    )
    if user_id is not None:
        query = query.where(Job.user_id == user_id)
    rows = (await session.execute(query.order_by(Application.id))).all()
    return [
        EmailRecipient(
            email=application.email,
            name=application.name,
            application_id=application.id,
            job_id=application.job_id,
            position=title,
        )
        for application, title in rows
    ]
