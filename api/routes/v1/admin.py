"""
Platform admin endpoints. Callers must be listed in ADMIN_USER_IDS.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin_user_id
from api.schemas.admin import AdminUserResponse, UserStatusUpdate
from api.services import admin as admin_service
from database.engine import get_db

router = APIRouter()


@router.get("/stats", summary="Platform Stats")
async def platform_stats(
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_admin_user_id),
):
    return await admin_service.get_platform_stats(db)


@router.get("/users", summary="List Users")
async def list_users(
    search: Optional[str] = Query(None, max_length=255, description="Match name, email or company"),
    status: Optional[str] = Query(None, pattern="^(active|inactive|deleted)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_admin_user_id),
):
    return await admin_service.list_users(
        db, search=search, status=status, page=page, page_size=page_size
    )


@router.patch(
    "/users/{user_id}/status",
    response_model=AdminUserResponse,
    summary="Update User Status",
)
async def update_user_status(
    request: UserStatusUpdate,
    user_id: str = Path(..., max_length=64),
    db: AsyncSession = Depends(get_db),
    admin_id: str = Depends(get_admin_user_id),
):
    """Activate, deactivate or soft-delete an account."""
    if user_id == admin_id and request.status != "active":
        raise HTTPException(status_code=400, detail="Admins cannot deactivate their own account")
    result = await admin_service.update_user_status(db, user_id, request.status, changed_by=admin_id)
    if not result.get("success"):
        code = 404 if result.get("error") == "User not found" else 400
        raise HTTPException(status_code=code, detail=result.get("error"))
    return result["user"]
