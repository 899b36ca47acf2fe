"""
Application workflow management endpoints.

Viewing applications, moving them through the hiring pipeline, rejecting and
restoring them, triggering AI scoring and resume parsing, uploading resumes
and listing the emails sent to a candidate.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Path, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import ensure_application_owner, ensure_job_owner, get_current_user_id
from api.schemas.applications import (
    ApplicationResponse,
    BulkOutcomeResponse,
    BulkRejectRequest,
    BulkStageMoveRequest,
    ManualRatingRequest,
    PipelineOutcomeResponse,
    RejectRequest,
    StageMoveRequest,
)
from api.schemas.common import PaginatedResponse
from api.services import applications as application_service
from api.services import emails as email_service
from api.services import pipeline as pipeline_service
from api.services import resumes as resume_service
from api.services import scoring as scoring_service
from core.config import settings
from database.engine import get_db
from database.models.applications import Application
from database.models.jobs import Job

router = APIRouter()


async def _require_owned_ids(db: AsyncSession, application_ids: list[int], user_id: str) -> None:
    """404 unless every id is an application on one of the user's jobs."""
    result = await db.execute(
        select(Application.id)
        .join(Job, Job.id == Application.job_id)
        .where(Application.id.in_(application_ids), Job.user_id == user_id)
    )
    owned = set(result.scalars().all())
    missing = [i for i in application_ids if i not in owned]
    if missing:
        raise HTTPException(status_code=404, detail=f"Applications not found: {missing}")


@router.get(
    "",
    response_model=PaginatedResponse[ApplicationResponse],
    summary="List Applications",
    description="List applications on the current user's jobs with filters, search and sorting.",
)
async def list_applications(
    job_id: Optional[int] = Query(None, description="Restrict to one job"),
    status: Optional[str] = Query(None, pattern="^(pending|reviewed|approved|rejected)$"),
    stage: Optional[str] = Query(None, description="Filter by pipeline stage"),
    search: Optional[str] = Query(None, max_length=255, description="Match name or email"),
    sort: str = Query("newest", pattern="^(newest|oldest|rating|name)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if job_id is not None:
        await ensure_job_owner(db, job_id, user_id)
    return await application_service.list_applications(
        db,
        job_id=job_id,
        status=status,
        stage=stage,
        search=search,
        sort=sort,
        page=page,
        page_size=page_size,
        user_id=user_id,
    )


@router.post(
    "/bulk/stage",
    response_model=BulkOutcomeResponse,
    summary="Bulk Move Stage",
)
async def bulk_move_stage(
    request: BulkStageMoveRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Move many applications to one stage in a single update per derived status."""
    await _require_owned_ids(db, request.application_ids, user_id)
    outcome = await pipeline_service.bulk_move_stage(db, request.application_ids, request.stage)
    return asdict(outcome)


@router.post(
    "/bulk/reject",
    response_model=BulkOutcomeResponse,
    summary="Bulk Reject",
)
async def bulk_reject(
    request: BulkRejectRequest,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Reject many applications, sending each candidate the rejection email."""
    await _require_owned_ids(db, request.application_ids, user_id)
    outcome = await pipeline_service.bulk_reject(db, request.application_ids, request.reason)
    return asdict(outcome)


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Details",
)
async def get_application(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    result = await application_service.get_application(db, application_id)
    if not result:
        raise HTTPException(status_code=404, detail="Application not found")
    return result


@router.post(
    "/{application_id}/reject",
    response_model=PipelineOutcomeResponse,
    summary="Reject Application",
    description="Email the candidate, then mark the application rejected. Both steps are reported.",
)
async def reject_application(
    request: RejectRequest,
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    outcome = await pipeline_service.reject(db, application_id, request.reason)
    return outcome.to_dict()


@router.post(
    "/{application_id}/unreject",
    response_model=PipelineOutcomeResponse,
    summary="Restore Rejected Application",
)
async def unreject_application(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    outcome = await pipeline_service.unreject(db, application_id)
    return outcome.to_dict()


@router.post(
    "/{application_id}/stage",
    response_model=PipelineOutcomeResponse,
    summary="Move Application Stage",
)
async def move_application_stage(
    request: StageMoveRequest,
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Move an application to a new stage in the hiring pipeline."""
    await ensure_application_owner(db, application_id, user_id)
    outcome = await pipeline_service.move_stage(db, application_id, request.stage)
    return outcome.to_dict()


@router.patch(
    "/{application_id}/rating",
    response_model=ApplicationResponse,
    summary="Set Manual Rating",
)
async def update_rating(
    request: ManualRatingRequest,
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    result = await application_service.update_manual_rating(db, application_id, request.rating)
    if not result.get("success"):
        raise HTTPException(status_code=400, detail=result.get("error", "Failed to update rating"))
    return result["application"]


@router.post(
    "/{application_id}/score",
    summary="Score Application",
    description="Run AI scoring now. Nothing is stored if the model output is unusable.",
)
async def score_application(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    result = await scoring_service.score_application(db, application_id)
    if result["status"] == scoring_service.STATUS_ERROR:
        raise HTTPException(status_code=502, detail=result.get("error", "Scoring failed"))
    return result


@router.post(
    "/{application_id}/parse-resume",
    summary="Parse Resume",
)
async def parse_resume(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    result = await resume_service.parse_resume(db, application_id)
    if not result.get("success"):
        raise HTTPException(status_code=400, detail=result.get("error", "Failed to parse resume"))
    return result



@router.post(
    "/{application_id}/resume",
    summary="Upload Resume",
    description="Store a PDF, DOCX or text resume for the application. Parse it afterwards with parse-resume.",
)
async def upload_resume(
    file: UploadFile = File(..., description="Resume file"),
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    # One byte past the limit is enough to reject an oversized file
    data = await file.read(settings.resume_max_bytes + 1)
    result = await resume_service.store_resume(db, application_id, file.filename or "", data)
    if not result.get("success"):
        raise HTTPException(status_code=400, detail=result.get("error", "Failed to store resume"))
    return result


@router.get(
    "/{application_id}/emails",
    summary="List Application Emails",
    description="Send attempts to this candidate, most recent first, including failures.",
)
async def list_application_emails(
    application_id: int = Path(..., description="Application ID"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_application_owner(db, application_id, user_id)
    return await email_service.list_email_logs(db, user_id, application_id=application_id, limit=limit)
