"""
Tests for score validation and the scoring agent.
"""

import json
from unittest.mock import AsyncMock

import pytest

from agents.scoring.agent import (
    ScoreOk,
    ScoreParseError,
    ScoringAgent,
    build_scoring_prompt,
    parse_score_response,
)
from database.models.applications import Application
from database.models.jobs import Job


def payload(**fields):
    return json.dumps(fields)


class TestParseScoreResponse:

    @pytest.mark.parametrize("rating,expected", [
        (2.5, 2.5),
        ("2.7", 2.7),
        (2, 2.0),
        (2.345, 2.35),
        (5, 3.0),
        (0, 1.0),
        (-4.2, 1.0),
    ])
    def test_rating_clamped_and_rounded(self, rating, expected):
        result = parse_score_response(payload(summary=" Strong backend fit. ", rating=rating))

        assert result == ScoreOk(rating=expected, summary="Strong backend fit.")

    @pytest.mark.parametrize("raw,reason", [
        (None, "Response is not valid JSON"),
        ("", "Response is not valid JSON"),
        ('```json\n{"summary": "x", "rating": 2}\n```', "Response is not valid JSON"),
        ("[1, 2]", "Response is not a JSON object"),
        (payload(rating=2), "Missing summary"),
        (payload(summary="   ", rating=2), "Missing summary"),
        (payload(summary=3, rating=2), "Missing summary"),
        (payload(summary="ok"), "Missing or non-numeric rating"),
        (payload(summary="ok", rating=True), "Missing or non-numeric rating"),
        (payload(summary="ok", rating="high"), "Missing or non-numeric rating"),
        (payload(summary="ok", rating=[2]), "Missing or non-numeric rating"),
        ('{"summary": "ok", "rating": NaN}', "Missing or non-numeric rating"),
    ])
    def test_unusable_output(self, raw, reason):
        result = parse_score_response(raw)

        assert isinstance(result, ScoreParseError)
        assert result.reason == reason
        assert result.raw == (raw or "")


@pytest.fixture
def job():
    return Job(
        title="Backend Engineer",
        description="Build payment services.",
        required_skills="python, postgres",
        role_type="engineering",
        employment_type="full-time",
        experience_level="senior",
    )


@pytest.fixture
def application():
    return Application(
        id=7,
        job_id=1,
        name="Ada Lovelace",
        email="ada@acme.io",
        cover_letter="Six years of Python.",
        skills=["python", "sql"],
        ai_rating=2.1,
    )


class TestBuildScoringPrompt:

    def test_includes_job_and_candidate(self, job, application):
        prompt = build_scoring_prompt(job, application)

        assert "Backend Engineer" in prompt
        assert "Ada Lovelace" in prompt
        assert "Six years of Python." in prompt
        assert '"python"' in prompt

    def test_missing_fields_have_placeholders(self, job, application):
        application.cover_letter = None

        prompt = build_scoring_prompt(job, application)

        assert "No cover letter provided" in prompt
        assert "Not answered" in prompt
        assert "Parsed Resume Data: Not provided" in prompt


class TestScoringAgent:

    @pytest.mark.asyncio
    async def test_score(self, job, application):
        agent = ScoringAgent()
        agent.run = AsyncMock(return_value=payload(summary="Solid", rating=2.4))

        result = await agent.score(job, application)

        assert result == ScoreOk(rating=2.4, summary="Solid")
        assert "Ada Lovelace" in agent.run.await_args.args[0]

    @pytest.mark.asyncio
    async def test_vendor_errors_propagate(self, job, application):
        agent = ScoringAgent()
        agent.run = AsyncMock(side_effect=ConnectionError("unreachable"))

        with pytest.raises(ConnectionError):
            await agent.score(job, application)

    @pytest.mark.asyncio
    async def test_process(self, job, application):
        agent = ScoringAgent()
        agent.run = AsyncMock(return_value="I think 2.5")

        result = await agent.process({"job": job, "application": application})

        assert result == {"status": "error", "error": "Response is not valid JSON"}
