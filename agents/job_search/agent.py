"""Job search agent: parses a free-text query into search term and filters."""

import logging
import math
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from agents.base import BaseAgent
from agents.registry import register_agent
from agents.common.utils import parse_json_response
from agents.job_search.prompts import JOB_SEARCH_PROMPT_TEMPLATE, JOB_SEARCH_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

BUDGET_CEILING = 200000
FILTER_KEYS = (
    "roleType",
    "locationType",
    "experienceLevel",
    "employmentType",
    "country",
    "state",
    "duration",
)


class SearchFilters(BaseModel):
    roleType: str = "all"
    locationType: str = "all"
    experienceLevel: str = "all"
    employmentType: str = "all"
    country: str = "all"
    state: str = "all"
    duration: str = "all"
    budgetRange: tuple[float, float] = (0, BUDGET_CEILING)


class SearchQuery(BaseModel):
    searchTerm: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    explanation: str = ""


def normalize_budget_range(budget: Optional[Iterable[float]]) -> tuple[int, int]:
    """
    Widen a parsed budget range so near-misses still match.

    [0, 0] (or nothing) means "no budget": the full range. Any other range is
    widened to [min*0.8, max*1.2], never beyond the ceiling.
    """
    values = list(budget or [])
    if len(values) != 2:
        return (0, BUDGET_CEILING)
    low, high = sorted(float(v) for v in values)
    if low == 0 and high == 0:
        return (0, BUDGET_CEILING)
    if low > 0 or high < BUDGET_CEILING:
        return (
            max(0, math.floor(low * 0.8)),
            min(BUDGET_CEILING, math.ceil(high * 1.2)),
        )
    return (int(low), int(high))


def fallback_query(query: str) -> SearchQuery:
    """Plain text search with every filter open."""
    return SearchQuery(
        searchTerm=query,
        filters=SearchFilters(),
        explanation="Using flexible text search with all filters open",
    )


@register_agent("job_search")
class JobSearchAgent(BaseAgent):
    """Parses job search queries."""

    def __init__(self):
        super().__init__(
            name="job_search",
            instructions=JOB_SEARCH_SYSTEM_PROMPT,
            temperature=0.1,
            max_output_tokens=600,
            json_output=True,
        )

    async def parse_query(
        self,
        query: str,
        available_options: Optional[Dict[str, list[str]]] = None,
    ) -> SearchQuery:
        """Parse query; unusable model output falls back to a plain text search.

        Args:
            query: The user's search text
            available_options: Known values per filter, shown to the model

        Returns:
            SearchQuery with a normalized budget range
        """
        options = available_options or {}
        prompt = JOB_SEARCH_PROMPT_TEMPLATE.format(
            role_types=", ".join(options.get("roleTypes", [])) or "any",
            location_types=", ".join(options.get("locationTypes", ["remote", "onsite", "hybrid"])),
            experience_levels=", ".join(options.get("experienceLevels", [])) or "any",
            employment_types=", ".join(options.get("employmentTypes", [])) or "any",
            query=query,
        )
        raw = await self.run(prompt)

        payload = parse_json_response(raw)
        if payload is None:
            return fallback_query(query)

        filters = payload.get("filters") if isinstance(payload.get("filters"), dict) else {}
        cleaned = {key: str(filters[key]) for key in FILTER_KEYS if filters.get(key)}
        try:
            cleaned["budgetRange"] = normalize_budget_range(filters.get("budgetRange"))
            return SearchQuery(
                searchTerm=str(payload.get("searchTerm") or query),
                filters=SearchFilters(**cleaned),
                explanation=str(payload.get("explanation") or ""),
            )
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Discarding malformed search filters: {e}")
            return fallback_query(query)

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.parse_query(
            input_data.get("query", ""), input_data.get("available_options")
        )
        return {"status": "success", **result.model_dump()}
