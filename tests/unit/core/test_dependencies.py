"""
Tests for authentication and ownership dependencies.
"""

from datetime import timedelta

import jwt
import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from api.dependencies import (
    decode_access_token,
    ensure_application_owner,
    ensure_job_owner,
    get_current_user_id,
    get_preferences_service,
)
from core.config import settings
from core.middleware.error_handling import setup_error_handlers
from tests.conftest import OTHER_USER_ID, OWNER_ID, make_token


class TestDecodeAccessToken:

    def test_valid(self):
        assert decode_access_token(make_token("user-9"))["sub"] == "user-9"

    def test_expired(self):
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(make_token(expires_in=timedelta(seconds=-5)))

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "x", "exp": 9999999999}, "another-secret-that-is-long-enough-32", algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(token)

    def test_missing_subject(self):
        token = jwt.encode(
            {"exp": 9999999999},
            settings.jwt_secret_key,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(token)


class TestGetCurrentUserId:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        setup_error_handlers(app)

        @app.get("/me")
        async def me(user_id: str = Depends(get_current_user_id)):
            return {"user_id": user_id}

        return TestClient(app)

    def test_authenticated(self, client):
        response = client.get("/me", headers={"Authorization": f"Bearer {make_token('user-5')}"})
        assert response.json() == {"user_id": "user-5"}

    def test_missing_credentials(self, client):
        response = client.get("/me")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Authentication required"

    def test_expired_token_has_own_code(self, client):
        token = make_token(expires_in=timedelta(minutes=-1))

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"

    def test_garbage_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"


def test_preferences_unavailable_without_cache(monkeypatch):
    from core.cache import redis_cache

    monkeypatch.setattr(redis_cache, "_redis", None)
    with pytest.raises(HTTPException) as exc_info:
        get_preferences_service()
    assert exc_info.value.status_code == 503


class TestOwnership:

    @pytest.mark.asyncio
    async def test_owner_gets_job(self, session, make_job):
        job = await make_job()
        assert (await ensure_job_owner(session, job.id, OWNER_ID)).id == job.id

    @pytest.mark.asyncio
    async def test_other_user_gets_not_found(self, session, make_job):
        job = await make_job()
        with pytest.raises(HTTPException) as exc_info:
            await ensure_job_owner(session, job.id, OTHER_USER_ID)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_job(self, session):
        with pytest.raises(HTTPException) as exc_info:
            await ensure_job_owner(session, 999, OWNER_ID)
        assert exc_info.value.detail == "Job not found"

    @pytest.mark.asyncio
    async def test_application_owner(self, session, make_job, make_application):
        application = await make_application(await make_job())

        found = await ensure_application_owner(session, application.id, OWNER_ID)
        assert found.id == application.id

        with pytest.raises(HTTPException) as exc_info:
            await ensure_application_owner(session, application.id, OTHER_USER_ID)
        assert exc_info.value.detail == "Application not found"
