"""Scoring agent: rates one application against its job on a 1.0-3.0 scale."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from agents.base import BaseAgent
from agents.registry import register_agent
from agents.common.utils import clamp, format_section, or_default
from agents.scoring.prompts import (
    RATING_MAX,
    RATING_MIN,
    SCORING_FRAMEWORK,
    SCORING_PROMPT_TEMPLATE,
    SCORING_SYSTEM_PROMPT,
)
from database.models.applications import Application
from database.models.jobs import Job

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreOk:
    """A well-formed score."""

    rating: float
    summary: str


@dataclass(frozen=True)
class ScoreParseError:
    """The model answered, but not with a usable {summary, rating} object."""

    reason: str
    raw: str


ScoreResult = Union[ScoreOk, ScoreParseError]


def parse_score_response(raw: str) -> ScoreResult:
    """
    Validate raw model output into a tagged result.

    The whole output must be a JSON object with a non-empty string summary
    and a numeric rating; the rating is clamped to the 1.0-3.0 scale.

    Args:
        raw: Model output text

    Returns:
        ScoreOk or ScoreParseError
    """
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return ScoreParseError(reason="Response is not valid JSON", raw=raw or "")

    if not isinstance(data, dict):
        return ScoreParseError(reason="Response is not a JSON object", raw=raw)

    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        return ScoreParseError(reason="Missing summary", raw=raw)

    rating = data.get("rating")
    # bool is an int subclass, but true/false is not a rating
    if isinstance(rating, bool) or not isinstance(rating, (int, float, str)):
        return ScoreParseError(reason="Missing or non-numeric rating", raw=raw)
    try:
        value = float(rating)
    except ValueError:
        return ScoreParseError(reason="Missing or non-numeric rating", raw=raw)
    if value != value:  # NaN
        return ScoreParseError(reason="Missing or non-numeric rating", raw=raw)

    return ScoreOk(rating=round(clamp(value, RATING_MIN, RATING_MAX), 2), summary=summary.strip())


def build_scoring_prompt(job: Job, application: Application) -> str:
    return SCORING_PROMPT_TEMPLATE.format(
        title=job.title,
        role_type=or_default(job.role_type),
        experience_level=or_default(job.experience_level),
        employment_type=or_default(job.employment_type),
        required_skills=or_default(job.required_skills),
        company_name=or_default(job.company_name),
        budget=or_default(job.budget),
        duration=or_default(job.duration),
        location_type=or_default(job.location_type),
        description=job.description,
        name=application.name,
        location=or_default(application.location, "Not provided"),
        available_start_date=or_default(application.available_start_date, "Not provided"),
        experience=format_section("Experience", application.experience),
        work_experience=format_section("Work Experience", application.work_experience),
        education=format_section("Education", application.education),
        skills=format_section("Skills", application.skills),
        portfolio_url=or_default(application.portfolio_url, "Not provided"),
        linkedin_url=or_default(application.linkedin_url, "Not provided"),
        github_url=or_default(application.github_url, "Not provided"),
        cover_letter=or_default(application.cover_letter, "No cover letter provided"),
        answer_1=or_default(application.answer_1, "Not answered"),
        answer_2=or_default(application.answer_2, "Not answered"),
        answer_3=or_default(application.answer_3, "Not answered"),
        parsed_resume=format_section("Parsed Resume Data", application.parsed_resume_data),
        previous_rating=or_default(application.ai_rating, "None"),
        previous_summary=or_default(application.ai_summary, "None"),
        framework=SCORING_FRAMEWORK,
    )


@register_agent("scoring")
class ScoringAgent(BaseAgent):
    """Rates an application and writes a short recruiter-facing summary."""

    def __init__(self):
        super().__init__(
            name="scoring",
            instructions=SCORING_SYSTEM_PROMPT,
            temperature=0.3,
            max_output_tokens=800,
            json_output=True,
        )

    async def score(self, job: Job, application: Application) -> ScoreResult:
        """Ask the model for a score and validate the answer.

        Vendor errors propagate; malformed answers come back as ScoreParseError.
        """
        raw = await self.run(build_scoring_prompt(job, application))
        result = parse_score_response(raw)
        if isinstance(result, ScoreParseError):
            logger.warning(
                f"Unusable score for application {application.id}: {result.reason}"
            )
        return result

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Score input_data['application'] against input_data['job']."""
        result = await self.score(input_data["job"], input_data["application"])
        if isinstance(result, ScoreOk):
            return {"status": "success", "rating": result.rating, "summary": result.summary}
        return {"status": "error", "error": result.reason}
