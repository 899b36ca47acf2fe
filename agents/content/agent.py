"""Content agent: generates job posts, skills tests, interview questions and summaries."""

import re
from enum import Enum
from typing import Any, Dict

from agents.base import BaseAgent
from agents.registry import register_agent
from agents.common.utils import or_default
from agents.content.prompts import (
    APPLY_CALL_TO_ACTION,
    CONTENT_SYSTEM_PROMPT,
    INTERVIEW_QUESTIONS_INSTRUCTIONS,
    JOB_CONTEXT_TEMPLATE,
    JOB_POST_INSTRUCTIONS,
    MINI_DESCRIPTION_INSTRUCTIONS,
    SKILLS_TEST_INSTRUCTIONS,
)
from database.models.jobs import Job


class ContentKind(str, Enum):
    JOB_POST = "job_post"
    SKILLS_TEST = "skills_test"
    INTERVIEW_QUESTIONS = "interview_questions"
    MINI_DESCRIPTION = "mini_description"


_INSTRUCTIONS = {
    ContentKind.JOB_POST: JOB_POST_INSTRUCTIONS,
    ContentKind.SKILLS_TEST: SKILLS_TEST_INSTRUCTIONS,
    ContentKind.INTERVIEW_QUESTIONS: INTERVIEW_QUESTIONS_INSTRUCTIONS,
    ContentKind.MINI_DESCRIPTION: MINI_DESCRIPTION_INSTRUCTIONS,
}

# Anything from these headings/phrases to the end of the post is dropped
_APPLICATION_INSTRUCTION_PATTERNS = [
    re.compile(r"\*\*(how to apply|application process|apply now)\*\*.*$", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"(send your (resume|cv)|email your application|submit your application to|"
        r"apply by emailing|contact us at|apply via email|visit our careers page).*$",
        re.IGNORECASE | re.DOTALL,
    ),
]
_CTA_PARAGRAPH = re.compile(r"^(ready to|interested\?|apply now)", re.IGNORECASE)


def clean_job_post(content: str) -> str:
    """Strip application instructions and make the post end with the apply call to action."""
    cleaned = content
    for pattern in _APPLICATION_INSTRUCTION_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.strip()
    if cleaned.endswith(APPLY_CALL_TO_ACTION):
        return cleaned
    paragraphs = cleaned.split("\n\n")
    if len(paragraphs) > 1 and _CTA_PARAGRAPH.match(paragraphs[-1].strip()):
        cleaned = "\n\n".join(paragraphs[:-1]).strip()
    return f"{cleaned}\n\n{APPLY_CALL_TO_ACTION}"


def build_job_context(job: Job) -> str:
    return JOB_CONTEXT_TEMPLATE.format(
        title=job.title,
        role_type=or_default(job.role_type),
        employment_type=or_default(job.employment_type),
        experience_level=or_default(job.experience_level),
        required_skills=or_default(job.required_skills),
        location_type=or_default(job.location_type),
        budget=or_default(job.budget),
        duration=or_default(job.duration),
        company_name=or_default(job.company_name),
        description=job.description,
    )


@register_agent("content")
class ContentAgent(BaseAgent):
    """Generates recruiting content for a job."""

    def __init__(self):
        super().__init__(
            name="content",
            instructions=CONTENT_SYSTEM_PROMPT,
            temperature=0.7,
            max_output_tokens=2048,
        )

    async def generate(self, job: Job, kind: ContentKind) -> str:
        """Generate one kind of content for job.

        Returns:
            The generated text, post-processed for its kind (may be empty)
        """
        prompt = f"{_INSTRUCTIONS[kind]}\n\n{build_job_context(job)}"
        text = (await self.run(prompt)).strip()
        if not text:
            return ""
        if kind == ContentKind.JOB_POST:
            return clean_job_post(text)
        if kind == ContentKind.MINI_DESCRIPTION:
            return text.splitlines()[0].strip().rstrip(".")
        return text

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        content = await self.generate(input_data["job"], ContentKind(input_data["kind"]))
        return {"status": "success" if content else "error", "content": content}
