"""FastAPI dependencies for dependency injection."""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import jwt

from core.cache import redis_cache
from core.config import settings
from core.integrations.email import EmailClient, get_email_client
from core.preferences import PreferencesService, RedisPreferenceStore
from database.models.applications import Application
from database.models.jobs import Job


security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """
    Verify and decode a bearer token issued by the identity provider.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is otherwise invalid
    """
    options = {"require": ["sub", "exp"]}
    if settings.jwt_audience:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        options={**options, "verify_aud": False},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Authenticated user's id (the token subject).

    An expired token gets its own error code so clients know to refresh the
    session rather than sign in from scratch.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "TOKEN_EXPIRED",
                "message": "Your session has expired. Please sign in again.",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(payload["sub"])


def get_preferences_service() -> PreferencesService:
    """Preferences backed by Redis."""
    if not redis_cache.is_ready:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences storage unavailable",
        )
    return PreferencesService(RedisPreferenceStore(redis_cache.redis))


def get_email_sender() -> EmailClient:
    return get_email_client()


async def ensure_job_owner(db: AsyncSession, job_id: int, user_id: str) -> Job:
    """Load a job the user owns; anyone else gets the same 404 as a missing job."""
    job = await db.get(Job, job_id)
    if job is None or job.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


async def ensure_application_owner(db: AsyncSession, application_id: int, user_id: str) -> Application:
    """Load an application on one of the user's jobs, or 404."""
    application = await db.get(Application, application_id)
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    job = await db.get(Job, application.job_id)
    if job is None or job.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


async def get_admin_user_id(user_id: str = Depends(get_current_user_id)) -> str:
    """Authenticated user who is listed in ADMIN_USER_IDS, else 403."""
    if user_id not in settings.admin_user_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user_id
