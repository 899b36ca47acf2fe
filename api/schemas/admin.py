"""Admin Pydantic schemas."""

from typing import Literal, Optional
from pydantic import BaseModel


class UserStatusUpdate(BaseModel):
    status: Literal["active", "inactive", "deleted"]


class AdminUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    created_at: Optional[str] = None
