"""
Inbox threads and messages.

A thread's unread_count should equal the number of its inbound messages with
is_read false. Recording an inbound reply increments the counter in the same
commit; reconcile_unread_counts re-derives it when the two drift apart, and
the periodic inbox task also removes duplicate deliveries of the same inbound
message.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional
import hashlib
import hmac
import logging
import re

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import now
from core.utils.sql import LIKE_ESCAPE, like_pattern
from database.models.communications import (
    EmailMessage,
    EmailThread,
    MessageDirection,
    ThreadStatus,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Signature"


def thread_to_dict(thread: EmailThread) -> Dict[str, Any]:
    return {
        "id": thread.id,
        "subject": thread.subject,
        "participants": thread.participants or [],
        "status": thread.status.value,
        "unread_count": thread.unread_count,
        "application_id": thread.application_id,
        "job_id": thread.job_id,
        "reply_to_email": thread.reply_to_email,
        "last_message_at": thread.last_message_at.isoformat() if thread.last_message_at else None,
    }


def message_to_dict(message: EmailMessage) -> Dict[str, Any]:
    return {
        "id": message.id,
        "thread_id": message.thread_id,
        "direction": message.direction.value,
        "sender_email": message.sender_email,
        "recipient_email": message.recipient_email,
        "subject": message.subject,
        "content": message.content,
        "message_type": message.message_type,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }


def is_participant(thread: EmailThread, email: str) -> bool:
    email = email.strip().lower()
    return any(p.strip().lower() == email for p in (thread.participants or []))


async def get_thread(session: AsyncSession, thread_id: int, user_id: Optional[str] = None) -> Optional[EmailThread]:
    thread = await session.get(EmailThread, thread_id)
    if thread is None or (user_id is not None and thread.user_id != user_id):
        return None
    return thread


async def list_threads(
    session: AsyncSession, user_id: str, status: Optional[str] = ThreadStatus.ACTIVE.value
) -> List[Dict[str, Any]]:
    """A user's threads, most recently active first."""
    query = select(EmailThread).where(EmailThread.user_id == user_id)
    if status:
        query = query.where(EmailThread.status == ThreadStatus(status))
    query = query.order_by(EmailThread.last_message_at.desc(), EmailThread.id.desc())
    threads = (await session.execute(query)).scalars().all()
    return [thread_to_dict(t) for t in threads]


async def get_thread_messages(session: AsyncSession, thread_id: int) -> List[Dict[str, Any]]:
    """Messages of a thread in the order they were recorded."""
    result = await session.execute(
        select(EmailMessage)
        .where(EmailMessage.thread_id == thread_id)
        .order_by(EmailMessage.created_at, EmailMessage.id)
    )
    return [message_to_dict(m) for m in result.scalars().all()]


async def mark_thread_read(session: AsyncSession, thread_id: int) -> Dict[str, Any]:
    """
    Mark every inbound message of a thread read and zero its unread counter.

    Returns:
        Dictionary with success status and the number of messages updated
    """
    thread = await session.get(EmailThread, thread_id)
    if not thread:
        return {"success": False, "error": "Thread not found"}

    result = await session.execute(
        update(EmailMessage)
        .where(
            EmailMessage.thread_id == thread_id,
            EmailMessage.direction == MessageDirection.INBOUND,
            EmailMessage.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    thread.unread_count = 0
    await session.commit()
    return {"success": True, "thread_id": thread_id, "marked_read": result.rowcount or 0}


async def record_inbound_message(
    session: AsyncSession,
    thread_id: int,
    sender: str,
    recipient: str,
    subject: Optional[str],
    content: str,
    external_message_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Store a reply received for a thread.

    The thread's unread_count is incremented in the same commit as the
    insert. A message whose external id was already recorded is ignored.

    Returns:
        Dictionary with success status, and duplicate=True when ignored
    """
    thread = await session.get(EmailThread, thread_id)
    if not thread:
        return {"success": False, "error": "Thread not found"}

    if external_message_id:
        existing = await session.execute(
            select(EmailMessage.id).where(
                EmailMessage.thread_id == thread_id,
                EmailMessage.external_message_id == external_message_id,
            )
        )
        existing_id = existing.scalars().first()
        if existing_id is not None:
            logger.info(f"Ignoring duplicate inbound message {external_message_id}")
            return {"success": True, "duplicate": True, "message_id": existing_id}

    message = EmailMessage(
        thread_id=thread_id,
        direction=MessageDirection.INBOUND,
        sender_email=sender,
        recipient_email=recipient,
        subject=subject,
        content=content or "",
        message_type="reply",
        is_read=False,
        external_message_id=external_message_id,
    )
    session.add(message)
    if not is_participant(thread, sender):
        thread.participants = [*(thread.participants or []), sender]
    await session.execute(
        update(EmailThread)
        .where(EmailThread.id == thread_id)
        .values(unread_count=EmailThread.unread_count + 1, last_message_at=now())
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    await session.refresh(thread)
    return {"success": True, "duplicate": False, "message_id": message.id}


async def reconcile_unread_counts(
    session: AsyncSession, user_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Re-derive unread_count for every thread from its unread inbound messages.

    Args:
        session: Database session
        user_id: Limit to one user's threads

    Returns:
        Dictionary with the corrected threads and their old/new counts
    """
    unread = (
        select(
            EmailMessage.thread_id,
            func.count(EmailMessage.id).label("unread"),
        )
        .where(
            EmailMessage.direction == MessageDirection.INBOUND,
            EmailMessage.is_read.is_(False),
        )
        .group_by(EmailMessage.thread_id)
        .subquery()
    )
    query = select(EmailThread, func.coalesce(unread.c.unread, 0)).outerjoin(
        unread, unread.c.thread_id == EmailThread.id
    )
    if user_id is not None:
        query = query.where(EmailThread.user_id == user_id)

    corrected: List[Dict[str, Any]] = []
    for thread, actual in (await session.execute(query)).all():
        if thread.unread_count != actual:
            corrected.append({"thread_id": thread.id, "old": thread.unread_count, "new": actual})
            thread.unread_count = actual
    if corrected:
        await session.commit()
        logger.info(f"Reconciled unread counts for {len(corrected)} threads")
    return {"corrected": corrected, "count": len(corrected)}


async def remove_duplicate_inbound(session: AsyncSession, since_hours: int = 24) -> Dict[str, Any]:
    """
    Delete repeated deliveries of the same inbound message within the window.

    Messages sharing an external_message_id are duplicates; the most recent
    one of each group is kept.

    Returns:
        Dictionary with the number of deleted messages
    """
    cutoff = now() - timedelta(hours=since_hours)
    result = await session.execute(
        select(EmailMessage.id, EmailMessage.external_message_id)
        .where(
            EmailMessage.direction == MessageDirection.INBOUND,
            EmailMessage.external_message_id.is_not(None),
            EmailMessage.created_at >= cutoff,
        )
        .order_by(EmailMessage.external_message_id, EmailMessage.created_at.desc(), EmailMessage.id.desc())
    )

    seen: set[str] = set()
    to_delete: List[int] = []
    for message_id, external_id in result.all():
        if external_id in seen:
            to_delete.append(message_id)
        else:
            seen.add(external_id)

    if to_delete:
        await session.execute(
            delete(EmailMessage)
            .where(EmailMessage.id.in_(to_delete))
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        logger.info(f"Removed {len(to_delete)} duplicate inbound messages")
    return {"deleted": len(to_delete)}


_THREAD_TAG = re.compile(r"\[Thread:\s*(\d+)\]")
_REPLY_PREFIX = re.compile(r"^((re|fwd?):\s*)+", re.IGNORECASE)


def thread_id_from_subject(subject: Optional[str]) -> Optional[int]:
    """The id in a "[Thread:42]" subject tag, if present."""
    match = _THREAD_TAG.search(subject or "")
    return int(match.group(1)) if match else None


def normalize_subject(subject: Optional[str]) -> str:
    """Strip reply/forward prefixes and thread tags."""
    return _THREAD_TAG.sub("", _REPLY_PREFIX.sub("", (subject or "").strip())).strip()


def verify_inbound_signature(raw_body: bytes, header: Optional[str], secret: Optional[str]) -> bool:
    """
    Check the email vendor's inbound route signature.

    The header carries the hex HMAC-SHA256 of the raw body keyed with the
    route's signing secret. When no secret is configured verification is
    skipped.
    """
    if not secret:
        logger.warning("Inbound email secret not configured; skipping signature check")
        return True
    if not header:
        return False
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, header.strip())


async def resolve_inbound_thread(
    session: AsyncSession, subject: Optional[str], sender: str
) -> Optional[EmailThread]:
    """
    Find the thread an inbound email belongs to.

    The subject's thread tag wins when the sender takes part in that thread;
    otherwise the most recent thread with a matching subject that lists the
    sender as a participant.
    """
    tagged = thread_id_from_subject(subject)
    if tagged is not None:
        thread = await session.get(EmailThread, tagged)
        if thread is not None and is_participant(thread, sender):
            return thread
        if thread is not None:
            logger.warning(f"Ignoring thread tag {tagged} from non-participant {sender}")

    normalized = normalize_subject(subject)
    if not normalized:
        return None
    result = await session.execute(
        select(EmailThread)
        .where(func.lower(EmailThread.subject).like(like_pattern(normalized.lower()), escape=LIKE_ESCAPE))
        .order_by(EmailThread.created_at.desc(), EmailThread.id.desc())
        .limit(10)
    )
    for thread in result.scalars().all():
        if is_participant(thread, sender):
            return thread
    return None


async def find_recent_correspondent(session: AsyncSession, sender: str) -> Optional[EmailThread]:
    """The thread of the most recent outbound message sent to this address."""
    result = await session.execute(
        select(EmailThread)
        .join(EmailMessage, EmailMessage.thread_id == EmailThread.id)
        .where(
            EmailMessage.direction == MessageDirection.OUTBOUND,
            func.lower(EmailMessage.recipient_email) == sender.lower(),
        )
        .order_by(EmailMessage.created_at.desc(), EmailMessage.id.desc())
        .limit(1)
    )
    return result.scalars().first()


async def open_inbound_thread(
    session: AsyncSession, owner_thread: EmailThread, subject: Optional[str], sender: str, recipient: Optional[str]
) -> EmailThread:
    """Start a new thread for the owner of owner_thread, carrying its candidate links."""
    reply_to = recipient or owner_thread.reply_to_email
    thread = EmailThread(
        user_id=owner_thread.user_id,
        application_id=owner_thread.application_id,
        job_id=owner_thread.job_id,
        subject=normalize_subject(subject) or "(no subject)",
        participants=[p for p in (sender, reply_to) if p],
        reply_to_email=reply_to,
        status=ThreadStatus.ACTIVE,
        unread_count=0,
    )
    session.add(thread)
    await session.commit()
    await session.refresh(thread)
    logger.info(f"Opened thread {thread.id} for user {thread.user_id} from inbound email")
    return thread


async def handle_inbound_email(session: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Route an inbound email webhook payload (from, to, subject, text, message_id)
    into its thread.

    Mail that answers no known thread starts a new one for the user who last
    wrote to the sender. Mail from someone nobody has written to is not stored.

    Returns:
        Dictionary with success status, the thread id and whether the thread
        was created for this message
    """
    sender = (payload.get("from") or "").strip()
    if not sender:
        return {"success": False, "error": "Missing sender"}
    subject = payload.get("subject")

    created = False
    thread = await resolve_inbound_thread(session, subject, sender)
    if thread is None:
        previous = await find_recent_correspondent(session, sender)
        if previous is None:
            logger.info(f"No thread or correspondent found for inbound email from {sender}")
            return {"success": False, "error": "No matching thread"}
        thread = await open_inbound_thread(session, previous, subject, sender, payload.get("to"))
        created = True

    result = await record_inbound_message(
        session,
        thread.id,
        sender=sender,
        recipient=payload.get("to") or thread.reply_to_email or "",
        subject=subject,
        content=payload.get("text") or payload.get("html") or "",
        external_message_id=payload.get("message_id") or payload.get("in_reply_to"),
    )
    return {**result, "thread_id": thread.id, "created_thread": created}
