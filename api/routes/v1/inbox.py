"""
Inbox endpoints: threads, messages, sending and unread reconciliation.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user_id, get_email_sender
from api.schemas.inbox import (
    MessageResponse,
    ReconcileResponse,
    SendEmailRequest,
    SendEmailResponse,
    ThreadResponse,
)
from api.services import emails as email_service
from api.services import inbox as inbox_service
from core.integrations.email import EmailClient
from database.engine import get_db
from workers.tasks.emails import send_bulk_email as send_bulk_email_task

router = APIRouter()


async def _owned_thread(db: AsyncSession, thread_id: int, user_id: str):
    thread = await inbox_service.get_thread(db, thread_id, user_id=user_id)
    if thread is None:
        raise HTTPException(status_code=404, detail="Thread not found")
    return thread


@router.get("/threads", response_model=list[ThreadResponse], summary="List Threads")
async def list_threads(
    thread_status: Optional[str] = Query("active", alias="status", pattern="^(active|archived)$"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await inbox_service.list_threads(db, user_id, status=thread_status)


@router.get(
    "/threads/{thread_id}/messages",
    response_model=list[MessageResponse],
    summary="Get Thread Messages",
)
async def get_thread_messages(
    thread_id: int = Path(..., description="Thread ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await _owned_thread(db, thread_id, user_id)
    return await inbox_service.get_thread_messages(db, thread_id)


@router.post("/threads/{thread_id}/read", summary="Mark Thread Read")
async def mark_thread_read(
    thread_id: int = Path(..., description="Thread ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await _owned_thread(db, thread_id, user_id)
    return await inbox_service.mark_thread_read(db, thread_id)


@router.post("/send", response_model=SendEmailResponse, summary="Send Email")
async def send_email(
    request: SendEmailRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    client: EmailClient = Depends(get_email_sender),
):
    """
    Send an email to each recipient individually, optionally opening a
    thread per recipient. With background=true the send is queued.
    """
    if request.thread_id is not None:
        await _owned_thread(db, request.thread_id, user_id)

    recipients = [email_service.EmailRecipient(**r.model_dump()) for r in request.recipients]
    recipients += await email_service.recipients_for_applications(db, request.application_ids, user_id)
    if not recipients:
        raise HTTPException(status_code=400, detail="No valid recipients")

    if request.background:
        task = send_bulk_email_task.delay(
            user_id,
            [asdict(r) for r in recipients],
            request.subject,
            request.content,
            template_id=request.template_id,
            thread_id=request.thread_id,
            create_thread=request.create_thread,
            company_name=request.company_name,
        )
        return {"success": True, "task_id": task.id}

    result = await email_service.send_bulk_email(
        db,
        user_id,
        recipients,
        request.subject,
        request.content,
        template_id=request.template_id,
        thread_id=request.thread_id,
        create_thread=request.create_thread,
        company_name=request.company_name,
        client=client,
    )
    if "error" in result and not result.get("results"):
        raise HTTPException(status_code=400, detail=result["error"])
    return result


@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
    summary="Reconcile Unread Counts",
)
async def reconcile(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Recompute unread counters for the current user's threads."""
    return await inbox_service.reconcile_unread_counts(db, user_id=user_id)
