"""
Candidate communication models: email threads, their messages, the send log
and user-defined templates.
"""

from typing import Any
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    func,
    JSON,
    Enum as SQLEnum,
)
from database.engine import Base, BigIntPK
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


# ============ Enums =============== #
class ThreadStatus(str, PyEnum):
    """Inbox thread status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class MessageDirection(str, PyEnum):
    """Which way a message travelled."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class EmailLogStatus(str, PyEnum):
    """Outcome of a single send attempt."""

    SENT = "sent"
    FAILED = "failed"


# ============ Threads & Messages =============== #
class EmailThread(Base):
    """
    A conversation with one or more candidates.

    unread_count mirrors the number of inbound messages with is_read false;
    the inbox reconciliation re-derives it when the two drift apart.
    """

    __tablename__ = "email_threads"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    application_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("applications.id", ondelete="SET NULL"), index=True
    )
    job_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("jobs.id", ondelete="SET NULL"), index=True
    )
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    participants: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[ThreadStatus] = mapped_column(
        SQLEnum(ThreadStatus, native_enum=False, length=20),
        nullable=False,
        default=ThreadStatus.ACTIVE,
    )
    unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reply_to_email: Mapped[str | None] = mapped_column(String(255))
    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
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

    messages: Mapped[list["EmailMessage"]] = relationship(
        "EmailMessage", back_populates="thread", lazy="raise", passive_deletes=True
    )


class EmailMessage(Base):
    """A single message inside a thread."""

    __tablename__ = "email_messages"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    thread_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("email_threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    direction: Mapped[MessageDirection] = mapped_column(
        SQLEnum(MessageDirection, native_enum=False, length=20), nullable=False
    )
    sender_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(500))
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message_type: Mapped[str] = mapped_column(String(50), nullable=False, default="email")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    external_message_id: Mapped[str | None] = mapped_column(String(255), index=True)
    attachments: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )

    thread: Mapped["EmailThread"] = relationship(
        "EmailThread", back_populates="messages", lazy="raise"
    )


# ============ Send log & templates =============== #
class EmailLog(Base):
    """One row per send attempt, successful or not."""

    __tablename__ = "email_logs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    application_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("applications.id", ondelete="SET NULL"), index=True
    )
    thread_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("email_threads.id", ondelete="SET NULL")
    )
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    template_id: Mapped[int | None] = mapped_column(BigIntPK)
    status: Mapped[EmailLogStatus] = mapped_column(
        SQLEnum(EmailLogStatus, native_enum=False, length=20), nullable=False
    )
    error_message: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )


class EmailTemplate(Base):
    """A reusable, user-owned email template with {placeholder} variables."""

    __tablename__ = "email_templates"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    variables: Mapped[list[str] | None] = mapped_column(JSON)

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
