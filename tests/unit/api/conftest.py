"""Fixtures for route tests: a stand-in session and a client wired to it."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.main import app
from database.engine import get_db
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job, JobStatus
from tests.conftest import OWNER_ID


@pytest.fixture
def db():
    """Session mock; rows registered in db.rows are returned by db.get."""
    session = MagicMock()
    session.rows = {}

    async def get(model, key):
        return session.rows.get((model, key))

    session.get = AsyncMock(side_effect=get)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    return session


@pytest.fixture
def client(db):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def add_job(db):
    def _add(job_id: int = 1, user_id: str = OWNER_ID, **fields) -> Job:
        job = Job(
            id=job_id,
            user_id=user_id,
            title=fields.pop("title", "Backend Engineer"),
            description="Build services",
            status=JobStatus.ACTIVE,
            **fields,
        )
        db.rows[(Job, job_id)] = job
        return job

    return _add


@pytest.fixture
def add_application(db, add_job):
    def _add(application_id: int = 10, job_id: int = 1, user_id: str = OWNER_ID) -> Application:
        if (Job, job_id) not in db.rows:
            add_job(job_id, user_id=user_id)
        application = Application(
            id=application_id,
            job_id=job_id,
            name="Ada Lovelace",
            email="ada@acme.io",
            status=ApplicationStatus.PENDING,
            pipeline_stage="applied",
        )
        db.rows[(Application, application_id)] = application
        return application

    return _add
