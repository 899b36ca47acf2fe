"""Common Pydantic schemas shared across the API."""

from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, Field


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    items: list[T] = Field(description="Items on this page")
    total: int = Field(ge=0, description="Matching items across all pages")
    page: int = Field(ge=1)
    page_size: int = Field(ge=1, le=100)
    total_pages: int = Field(ge=0)


class StepReport(BaseModel):
    """Outcome of one independent step of an operation."""

    ok: bool
    error: Optional[str] = None
    detail: Optional[dict[str, Any]] = None


class ErrorBody(BaseModel):
    code: str = Field(description="Error code for programmatic handling")
    message: str
    path: str
    method: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Shape of every error response."""

    error: ErrorBody


class MessageResponse(BaseModel):
    success: bool = True
    message: str = ""
