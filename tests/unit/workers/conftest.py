"""Fixtures for worker tasks: no real Redis, engine or database sessions."""

from unittest.mock import AsyncMock, MagicMock

import pytest

import database.engine as engine_module
from core.cache import redis_cache


class FakeSessionFactory:
    """Stands in for AsyncSessionLocal; every `async with` yields the same session."""

    def __init__(self):
        self.session = MagicMock()
        self.opened = 0

    def __call__(self):
        return self

    async def __aenter__(self):
        self.opened += 1
        return self.session

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture(autouse=True)
def worker_resources(monkeypatch):
    resources = MagicMock()
    resources.init = AsyncMock()
    resources.close = AsyncMock()
    resources.engine = MagicMock(dispose=AsyncMock())
    monkeypatch.setattr(redis_cache, "init", resources.init)
    monkeypatch.setattr(redis_cache, "close", resources.close)
    monkeypatch.setattr(engine_module, "db_engine", resources.engine)
    return resources


@pytest.fixture
def sessions():
    return FakeSessionFactory()
