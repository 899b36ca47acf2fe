"""
Tests for subscription plan gating.
"""

from datetime import datetime, timedelta, timezone

import pytest

from api.services.subscriptions import (
    PLAN_LIMITS,
    UNLIMITED,
    can_create_application,
    can_create_job,
    get_plan_limits,
    get_subscription,
    has_active_access,
    is_trial_active,
    subscription_summary,
    trial_days_remaining,
)
from database.models.subscriptions import PlanType, Subscription, SubscriptionStatus
from tests.conftest import OWNER_ID

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def sub(plan=PlanType.STARTER, status=SubscriptionStatus.ACTIVE, trial_end=None):
    return Subscription(user_id=OWNER_ID, plan_type=plan, status=status, trial_end_date=trial_end)


def trial(days_left: float, plan=PlanType.STARTER):
    return sub(plan=plan, status=SubscriptionStatus.TRIAL, trial_end=NOW + timedelta(days=days_left))


class TestPlanLimits:

    def test_ceilings(self):
        assert PLAN_LIMITS[PlanType.STARTER].max_jobs == 3
        assert PLAN_LIMITS[PlanType.PROFESSIONAL].max_applications == 500
        assert PLAN_LIMITS[PlanType.ENTERPRISE].max_jobs == UNLIMITED

    def test_scout_ai_not_on_starter(self):
        assert get_plan_limits(PlanType.STARTER).has_scout_ai is False
        assert get_plan_limits(PlanType.PROFESSIONAL).has_scout_ai is True


class TestTrial:

    @pytest.mark.parametrize("days_left,active,remaining", [
        (3, True, 3),
        (2.5, True, 3),
        (0.01, True, 1),
        (0, False, 0),
        (-1, False, 0),
    ])
    def test_trial_window(self, days_left, active, remaining):
        subscription = trial(days_left)
        assert is_trial_active(subscription, NOW) is active
        assert trial_days_remaining(subscription, NOW) == remaining

    def test_naive_trial_end_treated_as_utc(self):
        subscription = sub(status=SubscriptionStatus.TRIAL, trial_end=datetime(2024, 6, 2, 12, 0))
        assert trial_days_remaining(subscription, NOW) == 1

    def test_trial_status_without_end_date(self):
        assert is_trial_active(sub(status=SubscriptionStatus.TRIAL), NOW) is False


class TestAccess:

    @pytest.mark.parametrize("subscription,expected", [
        (None, False),
        (sub(status=SubscriptionStatus.ACTIVE), True),
        (sub(status=SubscriptionStatus.CANCELED), False),
        (sub(status=SubscriptionStatus.PAST_DUE), False),
        (trial(5), True),
        (trial(-5), False),
    ])
    def test_has_active_access(self, subscription, expected):
        assert has_active_access(subscription, NOW) is expected

    @pytest.mark.parametrize("plan,current,allowed", [
        (PlanType.STARTER, 2, True),
        (PlanType.STARTER, 3, False),
        (PlanType.PROFESSIONAL, 14, True),
        (PlanType.PROFESSIONAL, 15, False),
        (PlanType.ENTERPRISE, 10_000, True),
    ])
    def test_can_create_job(self, plan, current, allowed):
        assert can_create_job(sub(plan=plan), current, NOW) is allowed

    def test_can_create_application_ceiling(self):
        assert can_create_application(sub(), 99, NOW) is True
        assert can_create_application(sub(), 100, NOW) is False

    def test_expired_trial_blocks_everything(self):
        expired = trial(-1, plan=PlanType.ENTERPRISE)
        assert can_create_job(expired, 0, NOW) is False
        assert can_create_application(expired, 0, NOW) is False


class TestSummary:

    def test_no_subscription(self):
        assert subscription_summary(None, NOW) == {
            "plan_type": None,
            "status": None,
            "has_access": False,
            "trial_days_remaining": 0,
        }

    def test_trial_summary(self):
        summary = subscription_summary(trial(2, plan=PlanType.PROFESSIONAL), NOW)

        assert summary["plan_type"] == "professional"
        assert summary["status"] == "trial"
        assert summary["has_access"] is True
        assert summary["trial_days_remaining"] == 2
        assert summary["max_jobs"] == 15


@pytest.mark.asyncio
async def test_get_subscription(session, make_subscription):
    assert await get_subscription(session, OWNER_ID) is None
    await make_subscription(plan_type=PlanType.PROFESSIONAL)

    found = await get_subscription(session, OWNER_ID)

    assert found.plan_type == PlanType.PROFESSIONAL
