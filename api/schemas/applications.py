"""Application-related Pydantic schemas."""

from typing import Any, Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import StepReport


class ApplicationCreate(BaseModel):
    """Candidate intake form."""

    name: str = Field(min_length=1, max_length=255, description="Candidate's full name")
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    github_url: Optional[str] = Field(None, max_length=500)
    portfolio_url: Optional[str] = Field(None, max_length=500)
    available_start_date: Optional[str] = Field(None, max_length=50)
    experience: Optional[str] = None
    cover_letter: Optional[str] = None
    answer_1: Optional[str] = None
    answer_2: Optional[str] = None
    answer_3: Optional[str] = None
    resume_file_path: Optional[str] = Field(None, max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Strip whitespace from the name."""
        if isinstance(v, str):
            return v.strip()
        return v


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    available_start_date: Optional[str] = None
    experience: Optional[str] = None
    cover_letter: Optional[str] = None
    answers: list[str] = Field(default_factory=list)
    resume_file_path: Optional[str] = None
    parsed_resume_data: Optional[dict[str, Any]] = None
    work_experience: Optional[list[Any]] = None
    education: Optional[list[Any]] = None
    skills: Optional[list[Any]] = None
    ai_rating: Optional[float] = None
    ai_summary: Optional[str] = None
    manual_rating: Optional[int] = None
    status: str
    pipeline_stage: str
    previous_pipeline_stage: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ApplicationListQuery(BaseModel):
    job_id: Optional[int] = None
    status: Optional[Literal["pending", "reviewed", "approved", "rejected"]] = None
    stage: Optional[str] = None
    search: Optional[str] = Field(None, max_length=255)
    sort: Literal["newest", "oldest", "rating", "name"] = "newest"


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255, description="Rejection reason")


class StageMoveRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=100)


class BulkStageMoveRequest(BaseModel):
    application_ids: list[int] = Field(min_length=1, max_length=500)
    stage: str = Field(min_length=1, max_length=100)


class BulkRejectRequest(BaseModel):
    application_ids: list[int] = Field(min_length=1, max_length=500)
    reason: str = Field(min_length=1, max_length=255)


class ManualRatingRequest(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5, description="1-5, or null to clear")


class PipelineOutcomeResponse(BaseModel):
    """Result of a pipeline change; notification and state are reported separately."""

    success: bool
    state: StepReport
    notification: Optional[StepReport] = None
    application: Optional[ApplicationResponse] = None


class BulkOutcomeResponse(BaseModel):
    affected: int
    successful: int
    failed: int
    results: list[dict[str, Any]] = Field(default_factory=list)
