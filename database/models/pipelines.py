"""
Hiring pipeline stages.

A job may define its own ordered stages; jobs without any fall back to
DEFAULT_STAGES.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    func,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK
from core.utils.datetime import now
from datetime import datetime


DEFAULT_STAGES: list[tuple[str, str]] = [
    ("applied", "#6B7280"),
    ("screening", "#3B82F6"),
    ("interview", "#8B5CF6"),
    ("offer", "#F59E0B"),
    ("hired", "#10B981"),
    ("rejected", "#EF4444"),
]


class HiringStage(Base):
    """A named, ordered stage in a job's hiring pipeline."""

    __tablename__ = "hiring_stages"
    __table_args__ = (
        UniqueConstraint("job_id", "name", name="uq_hiring_stages_job_name"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("jobs.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(20))
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

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
