"""Inbox and email sending schemas."""

from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field, model_validator


class ThreadResponse(BaseModel):
    id: int
    subject: str
    participants: list[str] = Field(default_factory=list)
    status: str
    unread_count: int
    application_id: Optional[int] = None
    job_id: Optional[int] = None
    reply_to_email: Optional[str] = None
    last_message_at: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    thread_id: int
    direction: str
    sender_email: str
    recipient_email: str
    subject: Optional[str] = None
    content: str
    message_type: str
    is_read: bool
    created_at: Optional[str] = None


class RecipientIn(BaseModel):
    email: EmailStr
    name: str = ""
    application_id: Optional[int] = None
    job_id: Optional[int] = None
    position: str = ""


class SendEmailRequest(BaseModel):
    """Bulk send; either application_ids or explicit recipients."""

    subject: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1)
    recipients: list[RecipientIn] = Field(default_factory=list, max_length=500)
    application_ids: list[int] = Field(default_factory=list, max_length=500)
    template_id: Optional[int] = None
    thread_id: Optional[int] = None
    create_thread: bool = False
    company_name: Optional[str] = Field(None, max_length=255)
    background: bool = Field(False, description="Queue the send on the emails worker")

    @model_validator(mode="after")
    def require_recipients(self) -> "SendEmailRequest":
        if not self.recipients and not self.application_ids:
            raise ValueError("At least one recipient or application is required")
        return self


class SendEmailResponse(BaseModel):
    success: bool
    sent: int = 0
    failed: int = 0
    results: list[dict[str, Any]] = Field(default_factory=list)
    task_id: Optional[str] = None
    error: Optional[str] = None


class ReconcileResponse(BaseModel):
    corrected: list[dict[str, Any]]
    count: int
