"""
Jobs Module

Job postings owned by a recruiter, with AI-generated content fields.
Jobs are never hard-deleted; closing a job sets its status to closed.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    func,
    Text,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application


class JobStatus(str, PyEnum):
    """Lifecycle status of a job posting."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class LocationType(str, PyEnum):
    """Where the work happens."""

    REMOTE = "remote"
    ONSITE = "onsite"
    HYBRID = "hybrid"


class Job(Base):
    """A job posting that candidates apply to."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    required_skills: Mapped[str] = mapped_column(Text, nullable=False, default="")
    role_type: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    employment_type: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    experience_level: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # Location
    location_type: Mapped[str | None] = mapped_column(String(50))
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(120))
    country: Mapped[str | None] = mapped_column(String(120))

    # Compensation / engagement
    budget: Mapped[str | None] = mapped_column(String(100))
    duration: Mapped[str | None] = mapped_column(String(100))
    company_name: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=20),
        nullable=False,
        default=JobStatus.DRAFT,
        index=True,
    )

    # AI generated content
    generated_job_post: Mapped[str | None] = mapped_column(Text)
    generated_test: Mapped[str | None] = mapped_column(Text)
    generated_interview_questions: Mapped[str | None] = mapped_column(Text)
    ai_mini_description: Mapped[str | None] = mapped_column(Text)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        onupdate=now,
        server_default=func.now(),
    )

    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="job", lazy="raise", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Job id={self.id} title={self.title!r} status={self.status}>"
