"""User preference endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user_id, get_preferences_service
from api.schemas.preferences import PreferencesUpdate
from core.preferences import Preferences, PreferencesService

router = APIRouter()


@router.get("", response_model=Preferences, summary="Get Preferences")
async def get_preferences(
    user_id: str = Depends(get_current_user_id),
    service: PreferencesService = Depends(get_preferences_service),
):
    return await service.get(user_id)


@router.patch("", response_model=Preferences, summary="Update Preferences")
async def update_preferences(
    request: PreferencesUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PreferencesService = Depends(get_preferences_service),
):
    """Change only the fields that were sent."""
    return await service.update(user_id, **request.model_dump(exclude_unset=True))
