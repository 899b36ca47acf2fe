"""
Recruiter profiles. Identity lives with the external auth provider; the
profile row carries the company details used in outgoing email and the
account status managed by platform admins.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, func, Enum as SQLEnum
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


class ProfileStatus(str, PyEnum):
    """Account status; deleted is a soft delete and can be reversed."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class Profile(Base):
    """Per-user profile keyed by the identity provider's user id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255))
    company_name: Mapped[str | None] = mapped_column(String(255))
    # Address candidates reply to; routed back into the inbox
    unique_email: Mapped[str | None] = mapped_column(String(255), unique=True)
    status: Mapped[ProfileStatus] = mapped_column(
        SQLEnum(ProfileStatus, native_enum=False, length=20),
        nullable=False,
        default=ProfileStatus.ACTIVE,
        server_default=ProfileStatus.ACTIVE.value,
        index=True,
    )

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
