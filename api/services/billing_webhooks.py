"""
Billing vendor webhook handling.

Events overwrite the subscription fields they carry, so a replayed delivery
leaves the row unchanged.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import hashlib
import hmac
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import now, parse_datetime
from database.models.subscriptions import PlanType, Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Paddle-Signature"

# Vendor status -> our status
VENDOR_STATUSES = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIAL,
    "past_due": SubscriptionStatus.PAST_DUE,
    "paused": SubscriptionStatus.PAUSED,
    "canceled": SubscriptionStatus.CANCELED,
}


def _parse_signature_header(header: str) -> Dict[str, str]:
    parts: Dict[str, str] = {}
    for item in (header or "").split(";"):
        key, sep, value = item.strip().partition("=")
        if sep:
            parts[key] = value
    return parts


def verify_signature(raw_body: bytes, header: Optional[str], secret: Optional[str]) -> bool:
    """
    Check a webhook signature header of the form ``ts=<unix>;h1=<hex>``.

    h1 must be the HMAC-SHA256 of ``"{ts}:{body}"`` keyed with the secret.
    When no secret is configured verification is skipped.

    Args:
        raw_body: Request body exactly as received
        header: Signature header value
        secret: Shared webhook secret

    Returns:
        True if the signature matches (or verification is disabled)
    """
    if not secret:
        logger.warning("Billing webhook secret not configured; skipping signature check")
        return True
    parts = _parse_signature_header(header or "")
    timestamp, received = parts.get("ts"), parts.get("h1")
    if not timestamp or not received:
        return False
    signed = timestamp.encode("utf-8") + b":" + raw_body
    expected = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, received)


def _billing_period(data: Dict[str, Any]) -> tuple[Optional[datetime], Optional[datetime]]:
    period = data.get("current_billing_period") or {}
    return parse_datetime(period.get("starts_at")), parse_datetime(period.get("ends_at"))


async def _by_vendor_id(session: AsyncSession, subscription_id: Optional[str]) -> Optional[Subscription]:
    if not subscription_id:
        return None
    result = await session.execute(
        select(Subscription).where(Subscription.paddle_subscription_id == subscription_id)
    )
    return result.scalar_one_or_none()


async def _subscription_created(session: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
    custom = data.get("custom_data") or {}
    user_id = custom.get("user_id")
    if not user_id:
        logger.warning("subscription.created without custom_data.user_id")
        return {"handled": False, "reason": "missing user_id"}

    result = await session.execute(select(Subscription).where(Subscription.user_id == user_id))
    subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(user_id=user_id)
        session.add(subscription)

    try:
        plan = PlanType(custom.get("plan_type") or subscription.plan_type or PlanType.STARTER)
    except ValueError:
        logger.warning(f"Unknown plan type {custom.get('plan_type')!r}; keeping {subscription.plan_type}")
        plan = subscription.plan_type or PlanType.STARTER

    period_start, period_end = _billing_period(data)
    subscription.plan_type = plan
    subscription.status = SubscriptionStatus.ACTIVE
    subscription.paddle_subscription_id = data.get("id")
    subscription.paddle_customer_id = data.get("customer_id")
    subscription.subscription_start_date = parse_datetime(data.get("created_at")) or now()
    subscription.current_period_start = period_start
    subscription.current_period_end = period_end
    await session.commit()
    logger.info(f"Activated {plan.value} subscription for user {user_id}")
    return {"handled": True, "user_id": user_id}


async def _subscription_updated(session: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
    subscription = await _by_vendor_id(session, data.get("id"))
    if subscription is None:
        logger.warning(f"subscription.updated for unknown subscription {data.get('id')}")
        return {"handled": False, "reason": "unknown subscription"}

    status = VENDOR_STATUSES.get(str(data.get("status") or "").lower())
    if status is not None:
        subscription.status = status
    else:
        logger.warning(f"Ignoring unknown subscription status {data.get('status')!r}")
    subscription.current_period_start, subscription.current_period_end = _billing_period(data)
    await session.commit()
    return {"handled": True, "subscription_id": data.get("id")}


async def _subscription_canceled(session: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
    subscription = await _by_vendor_id(session, data.get("id"))
    if subscription is None:
        logger.warning(f"subscription.canceled for unknown subscription {data.get('id')}")
        return {"handled": False, "reason": "unknown subscription"}

    subscription.status = SubscriptionStatus.CANCELED
    subscription.subscription_end_date = parse_datetime(data.get("canceled_at")) or now()
    await session.commit()
    return {"handled": True, "subscription_id": data.get("id")}


async def handle_event(session: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply one billing webhook event.

    Args:
        session: Database session
        payload: Parsed webhook JSON with event_type and data

    Returns:
        Dictionary describing what was done; unknown events are ignored
    """
    event_type = payload.get("event_type")
    data = payload.get("data") or {}
    logger.info(f"Billing webhook received: {event_type}")

    if event_type == "subscription.created":
        return await _subscription_created(session, data)
    if event_type == "subscription.updated":
        return await _subscription_updated(session, data)
    if event_type == "subscription.canceled":
        return await _subscription_canceled(session, data)
    if event_type == "transaction.completed":
        logger.info(f"Payment completed for subscription {data.get('subscription_id')}")
        return {"handled": True}
    return {"handled": False, "reason": f"ignored event {event_type}"}
