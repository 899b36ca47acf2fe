"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.cache import redis_cache
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version="0.1.0")


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness check for load balancers: database reachable, cache optional."""
    checks = {"database": "ok", "cache": "disabled"}
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness database check failed: {e}")
        checks["database"] = "unavailable"

    if redis_cache.is_ready:
        try:
            await redis_cache.redis.ping()
            checks["cache"] = "ok"
        except Exception as e:
            logger.warning(f"Readiness cache check failed: {e}")
            checks["cache"] = "unavailable"

    if checks["database"] != "ok":
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
    return {"status": "ready", "checks": checks}
