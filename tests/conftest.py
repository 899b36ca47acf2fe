"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("SCORING_BATCH_DELAY", "0")

from datetime import timedelta
from io import BytesIO

import jwt
import pytest
import pytest_asyncio
from docx import Document
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import database.models  # noqa: F401
from core.config import settings
from core.utils.datetime import now
from database.engine import Base
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job, JobStatus
from database.models.subscriptions import PlanType, Subscription, SubscriptionStatus

OWNER_ID = "user-owner"
OTHER_USER_ID = "user-other"


# ==================== Database ==================== #

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ==================== Factories ==================== #

@pytest.fixture
def make_job(session):
    async def _make(**overrides) -> Job:
        values = {
            "user_id": OWNER_ID,
            "title": "Backend Engineer",
            "description": "Build and run our Python services.",
            "required_skills": "python, sql",
            "role_type": "engineering",
            "employment_type": "full-time",
            "experience_level": "senior",
            "location_type": "remote",
            "company_name": "Acme",
            "status": JobStatus.ACTIVE,
        }
        values.update(overrides)
        job = Job(**values)
        session.add(job)
        await session.commit()
        await session.refresh(job)
        return job

    return _make


@pytest.fixture
def make_application(session):
    async def _make(job: Job, **overrides) -> Application:
        values = {
            "job_id": job.id,
            "name": "Ada Lovelace",
            "email": "ada@acme.io",
            "cover_letter": "I have built payment systems in Python for six years.",
            "status": ApplicationStatus.PENDING,
            "pipeline_stage": "applied",
        }
        values.update(overrides)
        application = Application(**values)
        session.add(application)
        await session.commit()
        await session.refresh(application)
        return application

    return _make


@pytest.fixture
def make_subscription(session):
    async def _make(**overrides) -> Subscription:
        values = {
            "user_id": OWNER_ID,
            "plan_type": PlanType.STARTER,
            "status": SubscriptionStatus.ACTIVE,
        }
        values.update(overrides)
        subscription = Subscription(**values)
        session.add(subscription)
        await session.commit()
        await session.refresh(subscription)
        return subscription

    return _make


# ==================== Auth ==================== #

def make_token(sub: str = OWNER_ID, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    payload = {"sub": sub, "exp": now() + expires_in, **claims}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


# ==================== Documents ==================== #

@pytest.fixture
def minimal_pdf():
    """Fixture providing a minimal valid PDF."""
    return _create_minimal_pdf("Test PDF")


@pytest.fixture
def simple_docx():
    """Fixture providing a simple DOCX document."""
    return _create_test_docx("Test paragraph", "Test cell")


def _create_minimal_pdf(text: str) -> bytes:
    """Create a minimal valid PDF with embedded text."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
        b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
        b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 612 792]/Contents 4 0 R/Resources<</Font<</F1 5 0 R>>>>>>endobj\n"
        b"4 0 obj<</Length 44>>stream\nBT /F1 12 Tf 100 700 Td ("
        + text.encode()
        + b") Tj ET\nendstream endobj\n"
        b"5 0 obj<</Type/Font/Subtype/Type1/BaseFont/Helvetica>>endobj\n"
        b"xref\n0 6\n0000000000 65535 f \n0000000009 00000 n \n0000000058 00000 n \n0000000115 00000 n \n0000000214 00000 n \n0000000306 00000 n \n"
        b"trailer<</Size 6/Root 1 0 R>>\nstartxref\n388\n%%EOF"
    )


def _create_test_docx(para_text: str, cell_text: str = "") -> BytesIO:
    """Create a simple DOCX document for testing."""
    doc = Document()
    doc.add_paragraph(para_text)
    if cell_text:
        table = doc.add_table(rows=1, cols=1)
        table.cell(0, 0).text = cell_text
    stream = BytesIO()
    doc.save(stream)
    stream.seek(0)
    return stream


@pytest.fixture
def pdf_factory():
    return _create_minimal_pdf


@pytest.fixture
def docx_factory():
    return _create_test_docx
