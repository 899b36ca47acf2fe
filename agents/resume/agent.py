"""Resume agent: turns extracted resume text into structured fields."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from agents.base import BaseAgent
from agents.registry import register_agent
from agents.common.utils import parse_json_response
from agents.resume.prompts import (
    MAX_RESUME_CHARS,
    RESUME_PARSE_INSTRUCTIONS,
    RESUME_PARSER_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)

RESUME_KEYS = ("personalInfo", "workExperience", "education", "skills", "summary", "totalExperience")


@dataclass(frozen=True)
class ParsedResume:
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def work_experience(self) -> Any:
        return self.data.get("workExperience")

    @property
    def education(self) -> Any:
        return self.data.get("education")

    @property
    def skills(self) -> Any:
        return self.data.get("skills")


@dataclass(frozen=True)
class ResumeParseError:
    reason: str
    raw: str = ""


ResumeParseResult = Union[ParsedResume, ResumeParseError]


def normalize_resume_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the known keys and coerce list fields to lists."""
    data = {key: payload.get(key) for key in RESUME_KEYS}
    for key in ("workExperience", "education", "skills"):
        value = data[key]
        if value is None:
            data[key] = []
        elif not isinstance(value, list):
            data[key] = [value]
    if not isinstance(data["personalInfo"], dict):
        data["personalInfo"] = {}
    return data


@register_agent("resume")
class ResumeAgent(BaseAgent):
    """Parses resume text into personalInfo, experience, education and skills."""

    def __init__(self):
        super().__init__(
            name="resume",
            instructions=RESUME_PARSER_SYSTEM_PROMPT,
            temperature=0.1,
            max_output_tokens=4096,
            json_output=True,
        )

    async def parse(self, resume_text: str) -> ResumeParseResult:
        """Parse resume text.

        Args:
            resume_text: Plain text extracted from the resume file

        Returns:
            ParsedResume on success, ResumeParseError if the text is empty or
            the model output cannot be parsed
        """
        if not resume_text or not resume_text.strip():
            return ResumeParseError(reason="Resume contains no extractable text")

        prompt = f"{RESUME_PARSE_INSTRUCTIONS}\n\nRESUME TEXT:\n{resume_text[:MAX_RESUME_CHARS]}"
        raw = await self.run(prompt)

        payload = parse_json_response(raw)
        if payload is None:
            logger.warning("Resume agent returned unparseable output")
            return ResumeParseError(reason="Could not parse resume data", raw=raw)

        return ParsedResume(data=normalize_resume_payload(payload))

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.parse(input_data.get("resume_text", ""))
        if isinstance(result, ParsedResume):
            return {"status": "success", "parsed_data": result.data}
        return {"status": "error", "error": result.reason}
