"""
Resume storage and parsing for applications.

Parsing reads the stored file, extracts its text and asks the resume agent
for structured data. Nothing is written unless the agent returns a usable
result, so a failed parse can simply be retried.
"""

from pathlib import PurePosixPath
from typing import Any, Dict, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agents.registry import registry
from agents.resume.agent import ParsedResume, ResumeAgent
from core.config import settings
from core.middleware.error_handling import describe_persistence_error
from core.parsers.document_parser import SUPPORTED_EXTENSIONS, UnsupportedDocumentError, extract_text
from core.storage.local import LocalStorage
from database.models.applications import Application

logger = logging.getLogger(__name__)


def validate_resume_upload(filename: str, size: int) -> Optional[str]:
    """
    Check an uploaded resume against the type and size limits.

    Args:
        filename: Original file name
        size: File size in bytes

    Returns:
        None if acceptable, otherwise an error message
    """
    suffix = PurePosixPath(filename or "").suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        allowed = ", ".join(sorted(ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS))
        return f"Unsupported file type. Allowed types: {allowed}"
    if size <= 0:
        return "File is empty"
    if size > settings.resume_max_bytes:
        limit_mb = settings.resume_max_bytes / (1024 * 1024)
        return f"File is too large. Maximum size is {limit_mb:g} MB"
    return None


def resume_storage_path(application_id: int, filename: str) -> str:
    safe_name = PurePosixPath(filename).name.replace(" ", "_")
    return f"resumes/{application_id}/{safe_name}"


async def store_resume(
    session: AsyncSession,
    application_id: int,
    filename: str,
    data: bytes,
    storage: Optional[LocalStorage] = None,
) -> Dict[str, Any]:
    """
    Validate and save a resume file, then point the application at it.

    Returns:
        Dictionary with success status and the stored path
    """
    error = validate_resume_upload(filename, len(data))
    if error:
        return {"success": False, "error": error}

    application = await session.get(Application, application_id)
    if not application:
        return {"success": False, "error": "Application not found"}

    storage = storage or LocalStorage()
    path = resume_storage_path(application_id, filename)
    storage.save(data, path)
    application.resume_file_path = path
    await session.commit()
    return {"success": True, "resume_file_path": path}


async def parse_resume(
    session: AsyncSession,
    application_id: int,
    storage: Optional[LocalStorage] = None,
    agent: Optional[ResumeAgent] = None,
) -> Dict[str, Any]:
    """
    Parse an application's stored resume and save the structured fields.

    Each of parsed_resume_data, work_experience, education and skills is
    overwritten only when the parsed value is non-empty.

    Args:
        session: Database session
        application_id: Application whose resume to parse
        storage: File storage (defaults to local storage under STORAGE_ROOT)
        agent: Resume agent

    Returns:
        Dictionary with success status and the parsed data
    """
    application = await session.get(Application, application_id)
    if not application:
        return {"success": False, "error": "Application not found"}
    if not application.resume_file_path:
        return {"success": False, "error": "Application has no resume"}

    storage = storage or LocalStorage()
    path = application.resume_file_path
    if not storage.exists(path):
        logger.warning(f"Resume file missing for application {application_id}: {path}")
        return {"success": False, "error": "Resume file not found"}

    try:
        text = await extract_text(storage.read(path), path)
    except UnsupportedDocumentError as e:
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Text extraction failed for application {application_id}: {type(e).__name__}: {e}")
        return {"success": False, "error": "Could not read resume file"}

    agent = agent or registry.get("resume")
    try:
        result = await agent.parse(text)
    except Exception as e:
        logger.error(f"Resume parsing call failed for application {application_id}: {type(e).__name__}: {e}")
        return {"success": False, "error": "AI resume parsing failed"}

    if not isinstance(result, ParsedResume):
        return {"success": False, "error": result.reason}

    if result.data:
        application.parsed_resume_data = result.data
    if result.work_experience:
        application.work_experience = result.work_experience
    if result.education:
        application.education = result.education
    if result.skills:
        application.skills = result.skills

    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        info = describe_persistence_error(e)
        logger.error(f"Failed to store parsed resume for application {application_id}: {info.code}")
        return {"success": False, "error": info.message}

    logger.info(f"Parsed resume for application {application_id}")
    return {"success": True, "application_id": application_id, "parsed_data": result.data}
