"""
Tests for natural-language job search parsing.
"""

import json
from unittest.mock import AsyncMock

import pytest

from agents.job_search.agent import (
    BUDGET_CEILING,
    JobSearchAgent,
    SearchFilters,
    fallback_query,
    normalize_budget_range,
)


@pytest.mark.parametrize("budget,expected", [
    (None, (0, BUDGET_CEILING)),
    ([], (0, BUDGET_CEILING)),
    ([50000], (0, BUDGET_CEILING)),
    ([0, 0], (0, BUDGET_CEILING)),
    ([50000, 100000], (40000, 120000)),
    ([100000, 50000], (40000, 120000)),
    ([150000, 200000], (120000, BUDGET_CEILING)),
    ([0, 200000], (0, BUDGET_CEILING)),
])
def test_normalize_budget_range(budget, expected):
    assert normalize_budget_range(budget) == expected


def test_fallback_query_opens_every_filter():
    query = fallback_query("remote python")

    assert query.searchTerm == "remote python"
    assert query.filters == SearchFilters()
    assert query.filters.budgetRange == (0, BUDGET_CEILING)


class TestParseQuery:

    @pytest.fixture
    def agent(self):
        agent = JobSearchAgent()
        agent.run = AsyncMock()
        return agent

    @pytest.mark.asyncio
    async def test_filters_extracted(self, agent):
        agent.run.return_value = json.dumps({
            "searchTerm": "python developer",
            "filters": {
                "locationType": "remote",
                "experienceLevel": "",
                "budgetRange": [50000, 100000],
                "salary": "high",
            },
            "explanation": "Remote Python roles around 50-100k",
        })

        query = await agent.parse_query("remote python dev 50-100k", {"roleTypes": ["engineering"]})

        assert query.searchTerm == "python developer"
        assert query.filters.locationType == "remote"
        assert query.filters.experienceLevel == "all"
        assert query.filters.budgetRange == (40000, 120000)
        assert query.explanation == "Remote Python roles around 50-100k"

        prompt = agent.run.await_args.args[0]
        assert "remote python dev 50-100k" in prompt
        assert "engineering" in prompt

    @pytest.mark.asyncio
    async def test_missing_search_term_uses_query(self, agent):
        agent.run.return_value = '{"filters": {}}'

        query = await agent.parse_query("designer")

        assert query.searchTerm == "designer"
        assert query.filters == SearchFilters()

    @pytest.mark.parametrize("raw", [
        "no idea",
        '{"searchTerm": "x", "filters": {"budgetRange": ["low", "high"]}}',
    ])
    @pytest.mark.asyncio
    async def test_falls_back(self, agent, raw):
        agent.run.return_value = raw

        query = await agent.parse_query("data analyst")

        assert query == fallback_query("data analyst")

    @pytest.mark.asyncio
    async def test_process(self, agent):
        agent.run.return_value = '{"searchTerm": "go"}'

        result = await agent.process({"query": "golang"})

        assert result["status"] == "success"
        assert result["searchTerm"] == "go"
