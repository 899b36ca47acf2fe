"""Celery app factory and the bridge from sync tasks to async services."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from celery import Celery
from celery.signals import worker_process_init

from core.cache import redis_cache
from core.config import settings
from core.middleware.logging import setup_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

celery_app = Celery(
    "talentdesk",
    include=[
        "workers.tasks.scoring",
        "workers.tasks.resumes",
        "workers.tasks.emails",
        "workers.tasks.inbox",
    ],
)
celery_app.config_from_object("workers.celery_config")


@worker_process_init.connect
def _configure_worker(**_: Any) -> None:
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)


def run_async(work: Callable[[], Awaitable[T]]) -> T:
    """
    Run an async unit of work on a fresh event loop.

    The database pool and Redis client are bound to the loop that created
    their connections, so both are released before the loop closes.
    """
    from database.engine import db_engine

    async def _wrapped() -> T:
        try:
            await redis_cache.init()
        except Exception as e:
            logger.warning(f"Worker running without Redis cache: {e}")
        try:
            return await work()
        finally:
            await redis_cache.close()
            await db_engine.dispose()

    return asyncio.run(_wrapped())
