"""User preference schemas."""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class PreferencesUpdate(BaseModel):
    """Partial update; only fields that are sent are changed."""

    theme: Optional[Literal["light", "dark", "system"]] = None
    active_conversation_id: Optional[int] = Field(None, ge=1)
