"""Paystack webhook receiver."""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.wallet_service.paystack_client import (
    PaystackClient,
    get_paystack_client,
    verify_webhook_signature,
)
from services.wallet_service.schemas import WebhookAck
from services.wallet_service.services.verification import handle_paystack_event
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/paystack", response_model=WebhookAck)
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """
    Receive Paystack events.

    The signature is an HMAC-SHA512 of the raw body keyed with the secret
    key. Once it checks out the event is always acknowledged so Paystack
    stops retrying; processing failures are logged.
    """
    raw_body = await request.body()
    if not x_paystack_signature or not verify_webhook_signature(
        raw_body, x_paystack_signature
    ):
        logger.warning("Rejected Paystack webhook with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature"
        )

    try:
        payload = json.loads(raw_body)
    except ValueError:
        logger.warning("Paystack webhook body is not valid JSON")
        return WebhookAck()

    event = payload.get("event", "")
    data = payload.get("data") or {}
    logger.info(
        "Paystack webhook %s",
        event,
        extra={"extra_fields": {"event": event, "reference": data.get("reference")}},
    )

    try:
        await handle_paystack_event(db, event=event, data=data, paystack=paystack)
    except Exception:
        logger.exception("Failed to process Paystack event %s", event)
        await db.rollback()
    return WebhookAck()
