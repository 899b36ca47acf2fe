"""
Inbound vendor webhooks.

Billing events from the payment vendor (signed) and replies relayed by the
email vendor's inbound route.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.services import billing_webhooks as billing_service
from api.services import inbox as inbox_service
from core.config import settings
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


async def _json_body(raw: bytes) -> dict:
    try:
        payload = json.loads(raw or b"{}")
    except (ValueError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    return payload


@router.post("/billing", summary="Billing Webhook")
async def billing_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Apply a subscription lifecycle event.

    The signature header is checked against the raw body before anything
    is parsed.
    """
    raw = await request.body()
    signature = request.headers.get(billing_service.SIGNATURE_HEADER)
    if not billing_service.verify_signature(raw, signature, settings.paddle_webhook_secret):
        logger.warning("Rejected billing webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    payload = await _json_body(raw)
    return await billing_service.handle_event(db, payload)


@router.post("/email", summary="Inbound Email Webhook")
async def inbound_email_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Store a candidate's reply in the thread it answers.

    Requests are signed by the email vendor's inbound route.
    """
    raw = await request.body()
    signature = request.headers.get(inbox_service.SIGNATURE_HEADER)
    if not inbox_service.verify_inbound_signature(raw, signature, settings.inbound_email_secret):
        logger.warning("Rejected inbound email webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    payload = await _json_body(raw)
    result = await inbox_service.handle_inbound_email(db, payload)
    if not result.get("success"):
        # Acknowledge unmatched mail so the vendor does not retry it
        return {"success": False, "error": result.get("error")}
    return result
