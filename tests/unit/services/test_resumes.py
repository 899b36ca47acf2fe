"""
Tests for resume storage and parsing.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from agents.resume.agent import ParsedResume, ResumeParseError
from api.services import resumes
from core.storage.local import LocalStorage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path))


@pytest.fixture
def agent():
    mock = MagicMock()
    mock.parse = AsyncMock(return_value=ParsedResume(data={
        "personalInfo": {"name": "Ada Lovelace"},
        "workExperience": [{"company": "Analytical Engines", "title": "Engineer"}],
        "education": [],
        "skills": ["python", "sql"],
        "summary": "Engineer",
        "totalExperience": "6 years",
    }))
    return mock


class TestValidateResumeUpload:

    @pytest.mark.parametrize("filename", ["cv.pdf", "CV.PDF", "resume.docx", "notes.txt"])
    def test_accepted(self, filename):
        assert resumes.validate_resume_upload(filename, 2048) is None

    @pytest.mark.parametrize("filename", ["cv.doc", "photo.png", "resume", ""])
    def test_unsupported_type(self, filename):
        assert resumes.validate_resume_upload(filename, 2048).startswith("Unsupported file type")

    def test_empty(self):
        assert resumes.validate_resume_upload("cv.pdf", 0) == "File is empty"

    def test_too_large(self):
        error = resumes.validate_resume_upload("cv.pdf", 10 * 1024 * 1024 + 1)
        assert error == "File is too large. Maximum size is 10 MB"


def test_storage_path_strips_directories():
    assert resumes.resume_storage_path(7, "../../My CV.pdf") == "resumes/7/My_CV.pdf"


class TestStoreResume:

    @pytest.mark.asyncio
    async def test_saves_and_links(self, session, make_job, make_application, storage):
        application = await make_application(await make_job())

        result = await resumes.store_resume(session, application.id, "cv.txt", b"Ada Lovelace", storage=storage)

        assert result == {"success": True, "resume_file_path": f"resumes/{application.id}/cv.txt"}
        assert application.resume_file_path == result["resume_file_path"]
        assert storage.read(result["resume_file_path"]) == b"Ada Lovelace"

    @pytest.mark.asyncio
    async def test_rejects_invalid_file(self, session, storage):
        result = await resumes.store_resume(session, 1, "cv.exe", b"MZ", storage=storage)
        assert result["success"] is False


class TestParseResume:

    @pytest.fixture
    def stored(self, storage):
        storage.save(b"Ada Lovelace\nPython engineer", "resumes/1/cv.txt")
        return "resumes/1/cv.txt"

    @pytest.mark.asyncio
    async def test_parsed_fields_written(self, session, make_job, make_application, storage, stored, agent):
        application = await make_application(await make_job(), resume_file_path=stored, education=["Cambridge"])

        result = await resumes.parse_resume(session, application.id, storage=storage, agent=agent)

        assert result["success"] is True
        agent.parse.assert_awaited_once_with("Ada Lovelace\nPython engineer")
        await session.refresh(application)
        assert application.parsed_resume_data["personalInfo"] == {"name": "Ada Lovelace"}
        assert application.work_experience == [{"company": "Analytical Engines", "title": "Engineer"}]
        assert application.skills == ["python", "sql"]
        # Empty parsed values never overwrite what is stored
        assert application.education == ["Cambridge"]

    @pytest.mark.asyncio
    async def test_parse_error_writes_nothing(self, session, make_job, make_application, storage, stored, agent):
        application = await make_application(await make_job(), resume_file_path=stored)
        agent.parse.return_value = ResumeParseError(reason="Could not parse resume data", raw="???")

        result = await resumes.parse_resume(session, application.id, storage=storage, agent=agent)

        assert result == {"success": False, "error": "Could not parse resume data"}
        await session.refresh(application)
        assert application.parsed_resume_data is None

    @pytest.mark.asyncio
    async def test_agent_failure(self, session, make_job, make_application, storage, stored, agent):
        application = await make_application(await make_job(), resume_file_path=stored)
        agent.parse.side_effect = RuntimeError("quota")

        result = await resumes.parse_resume(session, application.id, storage=storage, agent=agent)

        assert result == {"success": False, "error": "AI resume parsing failed"}

    @pytest.mark.asyncio
    async def test_no_resume(self, session, make_job, make_application, storage, agent):
        application = await make_application(await make_job())

        result = await resumes.parse_resume(session, application.id, storage=storage, agent=agent)

        assert result == {"success": False, "error": "Application has no resume"}

    @pytest.mark.asyncio
    async def test_missing_file(self, session, make_job, make_application, storage, agent):
        application = await make_application(await make_job(), resume_file_path="resumes/1/gone.pdf")

        result = await resumes.parse_resume(session, application.id, storage=storage, agent=agent)

        assert result == {"success": False, "error": "Resume file not found"}
        agent.parse.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_application(self, session, storage, agent):
        result = await resumes.parse_resume(session, 404, storage=storage, agent=agent)
        assert result == {"success": False, "error": "Application not found"}
