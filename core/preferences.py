"""
User preferences (theme, active inbox conversation) behind an injected storage port.

Nothing is held in process globals: every read goes back to the store, so a
fresh service instance re-derives the same values.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark", "system"]


class Preferences(BaseModel):
    """Persisted preference document for one user."""

    theme: Theme = "system"
    active_conversation_id: Optional[int] = Field(default=None, ge=1)


class PreferenceStore(ABC):
    """Storage port for preference documents."""

    @abstractmethod
    async def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored document or None."""

    @abstractmethod
    async def save(self, user_id: str, data: Dict[str, Any]) -> None:
        """Persist the document."""


class InMemoryPreferenceStore(PreferenceStore):
    """Dict-backed store, used in tests and local tooling."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        raw = self._data.get(user_id)
        return json.loads(raw) if raw else None

    async def save(self, user_id: str, data: Dict[str, Any]) -> None:
        # Stored serialized so callers can't mutate what was saved
        self._data[user_id] = json.dumps(data)


class RedisPreferenceStore(PreferenceStore):
    """Redis-backed store, one key per user."""

    def __init__(self, redis: Redis, key_prefix: str = "prefs"):
        self._redis = redis
        self._key_prefix = key_prefix

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:{user_id}"

    async def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        raw = await self._redis.get(self._key(user_id))
        return json.loads(raw) if raw else None

    async def save(self, user_id: str, data: Dict[str, Any]) -> None:
        await self._redis.set(self._key(user_id), json.dumps(data))


class PreferencesService:
    """Reads and updates a user's preferences through a PreferenceStore."""

    def __init__(self, store: PreferenceStore):
        self.store = store

    async def get(self, user_id: str) -> Preferences:
        """Load preferences, falling back to defaults for missing or corrupt data."""
        data = await self.store.load(user_id)
        if not data:
            return Preferences()
        try:
            return Preferences.model_validate(data)
        except ValueError as e:
            logger.warning(f"Discarding invalid preferences for user {user_id}: {e}")
            return Preferences()

    async def update(self, user_id: str, **changes: Any) -> Preferences:
        """
        Apply partial changes and persist the result.

        Args:
            user_id: Owner of the preferences
            **changes: Fields of Preferences to overwrite

        Returns:
            The updated preferences

        Raises:
            ValueError: If a change is not a known field or fails validation
        """
        unknown = set(changes) - set(Preferences.model_fields)
        if unknown:
            raise ValueError(f"Unknown preference(s): {', '.join(sorted(unknown))}")

        current = await self.get(user_id)
        updated = Preferences.model_validate({**current.model_dump(), **changes})
        await self.store.save(user_id, updated.model_dump())
        return updated

    async def set_theme(self, user_id: str, theme: Theme) -> Preferences:
        return await self.update(user_id, theme=theme)

    async def set_active_conversation(
        self, user_id: str, conversation_id: Optional[int]
    ) -> Preferences:
        return await self.update(user_id, active_conversation_id=conversation_id)
