"""
Application Models

One candidate's submission to one job, with parsed resume fields, AI scoring
and hiring pipeline state.

Invariant kept by the pipeline service: status == rejected exactly when
pipeline_stage == "rejected" and rejection_reason is set.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    DateTime,
    func,
    Text,
    JSON,
    Float,
    Integer,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntPK
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job


INITIAL_STAGE = "applied"
REJECTED_STAGE = "rejected"
HIRED_STAGE = "hired"


class ApplicationStatus(str, PyEnum):
    """Review status of an application."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


class Application(Base):
    """A candidate's application to a job."""

    __tablename__ = "applications"
    __table_args__ = (
        Index("ix_applications_job_status", "job_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Candidate identity
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    location: Mapped[str | None] = mapped_column(String(255))
    linkedin_url: Mapped[str | None] = mapped_column(String(500))
    github_url: Mapped[str | None] = mapped_column(String(500))
    portfolio_url: Mapped[str | None] = mapped_column(String(500))
    available_start_date: Mapped[str | None] = mapped_column(String(50))

    # Free-text answers
    experience: Mapped[str | None] = mapped_column(Text)
    cover_letter: Mapped[str | None] = mapped_column(Text)
    answer_1: Mapped[str | None] = mapped_column(Text)
    answer_2: Mapped[str | None] = mapped_column(Text)
    answer_3: Mapped[str | None] = mapped_column(Text)

    # Resume
    resume_file_path: Mapped[str | None] = mapped_column(String(500))
    parsed_resume_data: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    work_experience: Mapped[list[Any] | None] = mapped_column(JSON)
    education: Mapped[list[Any] | None] = mapped_column(JSON)
    skills: Mapped[list[Any] | None] = mapped_column(JSON)

    # Scoring
    ai_rating: Mapped[float | None] = mapped_column(Float)  # 1.0 to 3.0
    ai_summary: Mapped[str | None] = mapped_column(Text)
    manual_rating: Mapped[int | None] = mapped_column(Integer)  # 1 to 5

    # Pipeline
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=20),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    pipeline_stage: Mapped[str] = mapped_column(
        String(100), nullable=False, default=INITIAL_STAGE
    )
    previous_pipeline_stage: Mapped[str | None] = mapped_column(String(100))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

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

    job: Mapped["Job"] = relationship("Job", back_populates="applications", lazy="raise")

    @property
    def answers(self) -> list[str]:
        """Non-empty free-text answers, in form order."""
        values = [self.answer_1, self.answer_2, self.answer_3]
        return [value for value in values if value and value.strip()]

    def __repr__(self) -> str:
        return (
            f"<Application id={self.id} job_id={self.job_id} "
            f"status={self.status} stage={self.pipeline_stage!r}>"
        )
