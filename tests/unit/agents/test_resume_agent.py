"""
Tests for resume parsing.
"""

import json
from unittest.mock import AsyncMock

import pytest

from agents.resume.agent import (
    ParsedResume,
    ResumeAgent,
    ResumeParseError,
    normalize_resume_payload,
)
from agents.resume.prompts import MAX_RESUME_CHARS


class TestNormalizeResumePayload:

    def test_known_keys_only(self):
        data = normalize_resume_payload({
            "personalInfo": {"name": "Ada"},
            "skills": ["Python"],
            "hobbies": ["chess"],
        })

        assert set(data) == {
            "personalInfo", "workExperience", "education", "skills", "summary", "totalExperience",
        }
        assert data["personalInfo"] == {"name": "Ada"}

    def test_list_fields_coerced(self):
        data = normalize_resume_payload({
            "personalInfo": "Ada",
            "workExperience": {"company": "Acme"},
            "skills": "Python",
        })

        assert data["personalInfo"] == {}
        assert data["workExperience"] == [{"company": "Acme"}]
        assert data["education"] == []
        assert data["skills"] == ["Python"]


class TestResumeAgent:

    @pytest.fixture
    def agent(self):
        agent = ResumeAgent()
        agent.run = AsyncMock()
        return agent

    @pytest.mark.asyncio
    async def test_parse(self, agent):
        agent.run.return_value = json.dumps({
            "personalInfo": {"name": "Ada Lovelace", "email": "ada@acme.io"},
            "workExperience": [{"company": "Acme", "title": "Engineer"}],
            "education": [{"school": "UCL"}],
            "skills": ["Python", "SQL"],
            "summary": "Backend engineer",
            "totalExperience": "6 years",
        })

        result = await agent.parse("Ada Lovelace\nEngineer at Acme")

        assert isinstance(result, ParsedResume)
        assert result.work_experience == [{"company": "Acme", "title": "Engineer"}]
        assert result.education == [{"school": "UCL"}]
        assert result.skills == ["Python", "SQL"]

    @pytest.mark.parametrize("text", ["", "   \n"])
    @pytest.mark.asyncio
    async def test_empty_text(self, agent, text):
        result = await agent.parse(text)

        assert result == ResumeParseError(reason="Resume contains no extractable text")
        agent.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unparseable_output(self, agent):
        agent.run.return_value = "Sorry, I can't read that."

        result = await agent.parse("Ada Lovelace")

        assert result == ResumeParseError(reason="Could not parse resume data", raw="Sorry, I can't read that.")

    @pytest.mark.asyncio
    async def test_long_resume_truncated(self, agent):
        agent.run.return_value = "{}"

        await agent.parse("x" * (MAX_RESUME_CHARS + 500))

        prompt = agent.run.await_args.args[0]
        assert "x" * MAX_RESUME_CHARS in prompt
        assert "x" * (MAX_RESUME_CHARS + 1) not in prompt

    @pytest.mark.asyncio
    async def test_process(self, agent):
        agent.run.return_value = '{"skills": "Go"}'

        result = await agent.process({"resume_text": "Gopher"})

        assert result["status"] == "success"
        assert result["parsed_data"]["skills"] == ["Go"]
