"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.cache import redis_cache
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import (
    admin,
    analytics,
    applications,
    dashboard,
    inbox,
    jobs,
    preferences,
    webhooks,
)
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()
    try:
        await redis_cache.init()
    except Exception as e:
        # Dashboard caching and preferences degrade without Redis
        logger.error(f"Redis unavailable, continuing without cache: {e}")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await redis_cache.close()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Applicant tracking with AI scoring, resume parsing and candidate inbox",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Setup error handlers (before middleware)
setup_error_handlers(app, debug=settings.debug)

# Middleware executes in reverse order of registration
app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    max_body_size=settings.log_max_body_size,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
app.include_router(
    applications.router,
    prefix=f"{settings.api_v1_prefix}/applications",
    tags=["Applications"],
)
app.include_router(
    jobs.router,
    prefix=f"{settings.api_v1_prefix}/jobs",
    tags=["Jobs"],
)
app.include_router(
    dashboard.router,
    prefix=f"{settings.api_v1_prefix}/dashboard",
    tags=["Dashboard"],
)
app.include_router(
    analytics.router,
    prefix=f"{settings.api_v1_prefix}/analytics",
    tags=["Analytics"],
)
app.include_router(
    inbox.router,
    prefix=f"{settings.api_v1_prefix}/inbox",
    tags=["Inbox"],
)
app.include_router(
    preferences.router,
    prefix=f"{settings.api_v1_prefix}/preferences",
    tags=["Preferences"],
)
app.include_router(
    webhooks.router,
    prefix=f"{settings.api_v1_prefix}/webhooks",
    tags=["Webhooks"],
)
app.include_router(
    admin.router,
    prefix=f"{settings.api_v1_prefix}/admin",
    tags=["Admin"],
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
