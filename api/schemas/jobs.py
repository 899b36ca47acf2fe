"""Job-related Pydantic schemas."""

from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    """Schema for creating a job."""

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    required_skills: Optional[str] = None
    role_type: Optional[str] = Field(None, max_length=100)
    employment_type: Optional[str] = Field(None, max_length=100)
    experience_level: Optional[str] = Field(None, max_length=100)
    location_type: Optional[Literal["remote", "onsite", "hybrid"]] = None
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, max_length=120)
    country: Optional[str] = Field(None, max_length=120)
    budget: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)


class JobResponse(BaseModel):
    id: int
    user_id: str
    title: str
    description: str
    required_skills: Optional[str] = None
    role_type: Optional[str] = None
    employment_type: Optional[str] = None
    experience_level: Optional[str] = None
    location_type: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    budget: Optional[str] = None
    duration: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    generated_job_post: Optional[str] = None
    generated_test: Optional[str] = None
    generated_interview_questions: Optional[str] = None
    ai_mini_description: Optional[str] = None
    view_count: int = 0
    application_count: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class JobStatusUpdate(BaseModel):
    status: Literal["draft", "active", "paused", "closed"]


class GeneratedContentResponse(BaseModel):
    job_id: int
    kind: str
    content: str


class JobSearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=500)


class JobSearchResponse(BaseModel):
    query: dict[str, Any]
    jobs: list[JobResponse]
    total: int


class RescoreResponse(BaseModel):
    job_id: int
    task_id: str
    queued: int
