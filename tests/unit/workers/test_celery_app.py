"""
Tests for the Celery app configuration and the async bridge.
"""

import pytest

from workers.celery_app import celery_app, run_async
import workers.tasks.emails  # noqa: F401
import workers.tasks.inbox  # noqa: F401
import workers.tasks.resumes  # noqa: F401
import workers.tasks.scoring  # noqa: F401


class TestRunAsync:

    def test_returns_result_and_releases_resources(self, worker_resources):
        async def work():
            return {"status": "scored"}

        assert run_async(work) == {"status": "scored"}
        worker_resources.init.assert_awaited_once()
        worker_resources.close.assert_awaited_once()
        worker_resources.engine.dispose.assert_awaited_once()

    def test_resources_released_on_failure(self, worker_resources):
        async def work():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run_async(work)

        worker_resources.close.assert_awaited_once()
        worker_resources.engine.dispose.assert_awaited_once()

    def test_runs_without_cache(self, worker_resources):
        worker_resources.init.side_effect = ConnectionError("redis down")

        async def work():
            return 42

        assert run_async(work) == 42


class TestConfiguration:

    @pytest.mark.parametrize("task_name", [
        "workers.tasks.scoring.score_application",
        "workers.tasks.scoring.rescore_job",
        "workers.tasks.resumes.parse_application_resume",
        "workers.tasks.emails.send_bulk_email",
        "workers.tasks.inbox.reconcile_inbox",
    ])
    def test_tasks_registered(self, task_name):
        assert task_name in celery_app.tasks

    @pytest.mark.parametrize("pattern,queue", [
        ("workers.tasks.scoring.*", "ai_scoring"),
        ("workers.tasks.resumes.*", "ai_scoring"),
        ("workers.tasks.emails.*", "emails"),
        ("workers.tasks.inbox.*", "maintenance"),
    ])
    def test_routes(self, pattern, queue):
        assert celery_app.conf.task_routes[pattern]["queue"] == queue

    def test_inbox_reconciled_periodically(self):
        schedule = celery_app.conf.beat_schedule["reconcile-inbox"]
        assert schedule["task"] == "workers.tasks.inbox.reconcile_inbox"
        assert schedule["schedule"].total_seconds() == 15 * 60

    def test_json_only(self):
        assert celery_app.conf.task_serializer == "json"
        assert celery_app.conf.accept_content == ["json"]
