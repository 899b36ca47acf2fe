"""
Job management endpoints.

Creating and publishing jobs, AI content generation, batch rescoring,
CSV export, search, and the public application intake.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import ensure_job_owner, get_current_user_id
from api.schemas.applications import ApplicationCreate, ApplicationResponse
from api.schemas.jobs import (
    GeneratedContentResponse,
    JobCreate,
    JobResponse,
    JobSearchRequest,
    JobSearchResponse,
    JobStatusUpdate,
    RescoreResponse,
)
from api.services import applications as application_service
from api.services import exports as export_service
from api.services import jobs as job_service
from api.services import pipeline as pipeline_service
from database.engine import get_db
from workers.tasks.scoring import rescore_job

router = APIRouter()


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
)
async def create_job(
    request: JobCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create a draft job; refused once the plan's job ceiling is reached."""
    result = await job_service.create_job(db, user_id, request.model_dump(exclude_none=True))
    if not result.get("success"):
        raise HTTPException(status_code=400, detail=result.get("error", "Failed to create job"))
    return result["job"]


@router.get("", response_model=list[JobResponse], summary="List Jobs")
async def list_jobs(
    status_filter: Optional[str] = Query(
        None, alias="status", pattern="^(draft|active|paused|closed)$"
    ),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await job_service.list_jobs(db, user_id, status=status_filter)


@router.post("/search", response_model=JobSearchResponse, summary="Search Jobs")
async def search_jobs(request: JobSearchRequest, db: AsyncSession = Depends(get_db)):
    """Natural-language search over active jobs."""
    return await job_service.search_jobs(db, request.query)


@router.get("/{job_id}", response_model=JobResponse, summary="Get Job")
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_job_owner(db, job_id, user_id)
    result = await job_service.get_job(db, job_id)
    if not result:
        raise HTTPException(status_code=404, detail="Job not found")
    return result


@router.patch("/{job_id}/status", response_model=JobResponse, summary="Update Job Status")
async def update_job_status(
    request: JobStatusUpdate,
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_job_owner(db, job_id, user_id)
    result = await job_service.update_job_status(db, job_id, request.status)
    if not result.get("success"):
        raise HTTPException(status_code=400, detail=result.get("error", "Failed to update job"))
    return result["job"]


@router.post(
    "/{job_id}/generate/{kind}",
    response_model=GeneratedContentResponse,
    summary="Generate Job Content",
    description="Generate a job post, skills test, interview questions or mini description.",
)
async def generate_content(
    job_id: int = Path(..., description="Job ID"),
    kind: str = Path(..., pattern="^(job_post|skills_test|interview_questions|mini_description)$"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_job_owner(db, job_id, user_id)
    result = await job_service.generate_job_content(db, job_id, kind)
    if not result.get("success"):
        raise HTTPException(status_code=502, detail=result.get("error", "Content generation failed"))
    return result


@router.post(
    "/{job_id}/rescore",
    response_model=RescoreResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Rescore Applications",
    description="Queue AI rescoring of every application on the job.",
)
async def rescore_applications(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_job_owner(db, job_id, user_id)
    applications = await application_service.get_applications_for_job(db, job_id)
    task = rescore_job.delay(job_id)
    return {"job_id": job_id, "task_id": task.id, "queued": len(applications)}


@router.get("/{job_id}/export", summary="Export Applications CSV")
async def export_applications(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    job = await ensure_job_owner(db, job_id, user_id)
    applications = await application_service.get_applications_for_job(db, job_id)
    return Response(
        content=export_service.applications_to_csv(applications),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_service.export_filename(job.title)}"'
        },
    )


@router.get("/{job_id}/stages", summary="List Pipeline Stages")
async def list_stages(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await ensure_job_owner(db, job_id, user_id)
    return await pipeline_service.list_stages(db, job_id)


@router.post("/{job_id}/view", status_code=status.HTTP_204_NO_CONTENT, summary="Record Job View")
async def record_view(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    if not await job_service.increment_view_count(db, job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{job_id}/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply To Job",
    description="Public candidate intake for an active job.",
)
async def apply_to_job(
    request: ApplicationCreate,
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    result = await application_service.create_application(
        db, job_id, request.model_dump(exclude_none=True)
    )
    if not result.get("success"):
        error = result.get("error", "Failed to submit application")
        code = 404 if error == "Job not found" else 400
        raise HTTPException(status_code=code, detail=error)
    return result["application"]
