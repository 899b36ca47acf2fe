"""
Tests for hiring analytics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from api.services import analytics
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job, JobStatus
from tests.conftest import OTHER_USER_ID, OWNER_ID

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


def app(id, job_id=1, stage="applied", rating=None, days_ago=1, status=ApplicationStatus.PENDING):
    if stage == "hired":
        status = ApplicationStatus.APPROVED
    return Application(
        id=id,
        job_id=job_id,
        name=f"Candidate {id}",
        email=f"c{id}@acme.io",
        status=status,
        ai_rating=rating,
        pipeline_stage=stage,
        created_at=NOW - timedelta(days=days_ago),
    )


def job(id, title=None):
    return Job(id=id, user_id=OWNER_ID, title=title or f"Job {id}", status=JobStatus.ACTIVE)


class TestTrend:

    def test_thirty_points_oldest_first(self):
        trend = analytics.compute_trend([], NOW)

        assert len(trend) == 30
        assert trend[0].date == "2024-05-12"
        assert trend[-1].date == "2024-06-10"
        assert all(p.applications == 0 and p.average_rating == 0.0 for p in trend)

    def test_buckets_by_day(self):
        applications = [
            app(1, rating=3.0, days_ago=0),
            app(2, stage="hired", days_ago=0),
            app(3, rating=2.0, days_ago=2),
            app(4, days_ago=45),
        ]

        trend = {p.date: p for p in analytics.compute_trend(applications, NOW)}

        assert trend["2024-06-10"] == analytics.TrendPoint(
            date="2024-06-10", applications=2, hired=1, average_rating=1.5
        )
        assert trend["2024-06-08"].applications == 1
        assert sum(p.applications for p in trend.values()) == 3


class TestJobPerformance:

    def test_per_job_rates(self):
        jobs = [job(1), job(2)]
        applications = [
            app(1, job_id=1, stage="hired", rating=3.0),
            app(2, job_id=1, rating=1.0),
            app(3, job_id=1),
            app(4, job_id=1),
            app(5, job_id=2, stage="hired"),
        ]

        performance = analytics.compute_job_performance(jobs, applications)

        assert [p.job_id for p in performance] == [1, 2]
        assert performance[0] == analytics.JobPerformance(
            job_id=1, job_title="Job 1", applications=4, hired=1, hire_rate=25.0, average_rating=2.0
        )
        assert performance[1].hire_rate == 100.0

    def test_job_without_applications(self):
        performance = analytics.compute_job_performance([job(1)], [])
        assert performance == [analytics.JobPerformance(job_id=1, job_title="Job 1")]


class TestTopPerformingJob:

    def test_needs_five_applications(self):
        jobs = [job(1, "Small"), job(2, "Busy")]
        applications = [app(1, job_id=1, stage="hired")]
        applications += [app(10 + i, job_id=2, stage="hired" if i == 0 else "applied") for i in range(5)]

        top = analytics.top_performing_job(analytics.compute_job_performance(jobs, applications))

        assert top.job_title == "Busy"
        assert top.hire_rate == 20.0

    def test_none_when_no_job_qualifies(self):
        performance = analytics.compute_job_performance([job(1)], [app(i) for i in range(4)])
        assert analytics.top_performing_job(performance) is None


def test_build_analytics_payload():
    jobs = [job(1)]
    applications = [
        app(1, stage="hired", rating=3.0, days_ago=0),
        app(2, rating=1.0, days_ago=3, status=ApplicationStatus.REVIEWED),
        app(3, days_ago=8, status=ApplicationStatus.REJECTED),
        app(4, days_ago=20),
    ]

    payload = analytics.build_analytics(jobs, applications, NOW)

    assert payload["total_jobs"] == 1
    assert payload["total_applications"] == 4
    assert payload["hired_count"] == 1
    assert payload["hire_rate"] == 25.0
    assert payload["conversion_rate"] == payload["hire_rate"]
    assert payload["average_rating"] == 1.0
    assert payload["applications_this_week"] == 2
    assert payload["applications_this_month"] == 3
    assert payload["pipeline"] == {
        "pending": 1, "reviewed": 1, "approved": 1, "rejected": 1, "total": 4
    }
    assert payload["top_performing_job"] is None
    assert len(payload["trend"]) == 30
    assert payload["job_performance"][0]["applications"] == 4
    assert payload["generated_at"] == NOW.isoformat()


def test_empty_payload():
    payload = analytics.build_analytics([], [], NOW)

    assert payload["hire_rate"] == 0.0
    assert payload["average_rating"] == 0.0
    assert payload["job_performance"] == []


class TestGetAnalytics:

    @pytest.mark.asyncio
    async def test_scoped_to_owner(self, session, make_job, make_application):
        mine = await make_job()
        theirs = await make_job(user_id=OTHER_USER_ID)
        await make_application(mine, pipeline_stage="hired", status=ApplicationStatus.APPROVED)
        await make_application(mine, email="b@acme.io")
        await make_application(theirs)

        payload = await analytics.get_analytics(session, OWNER_ID)

        assert payload["total_jobs"] == 1
        assert payload["total_applications"] == 2
        assert payload["hire_rate"] == 50.0
        assert payload["trend"][-1]["applications"] == 2

    @pytest.mark.asyncio
    async def test_single_job(self, session, make_job, make_application):
        first = await make_job()
        second = await make_job(title="Designer")
        await make_application(first)
        await make_application(second)

        payload = await analytics.get_analytics(session, OWNER_ID, job_id=second.id)

        assert [p["job_title"] for p in payload["job_performance"]] == ["Designer"]

    @pytest.mark.asyncio
    async def test_no_jobs(self, session):
        payload = await analytics.get_analytics(session, OWNER_ID)
        assert payload["total_applications"] == 0
