"""Outbound SMS via Termii.

Callers treat delivery as best-effort: ``send_sms`` raises ``SmsError`` on an
API failure and the caller decides whether that matters.
"""

import httpx

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class SmsError(Exception):
    pass


async def send_sms(phone: str, message: str) -> bool:
    """Send a plain SMS. Returns False (without calling out) if Termii is not configured."""
    settings = get_settings()
    if not settings.TERMII_API_KEY:
        logger.warning("TERMII_API_KEY not configured, skipping SMS to %s", phone)
        return False

    payload = {
        "api_key": settings.TERMII_API_KEY,
        "to": phone,
        "from": settings.TERMII_SENDER_ID,
        "sms": message,
        "type": "plain",
        "channel": "generic",
    }
    async with httpx.AsyncClient(timeout=15.0) as client:
        response = await client.post(
            f"{settings.TERMII_BASE_URL.rstrip('/')}/sms/send", json=payload
        )

    if not response.is_success:
        raise SmsError(f"Termii API error ({response.status_code}): {response.text}")
    return True


async def send_sms_safely(phone: str, message: str) -> bool:
    """``send_sms`` that logs and swallows every failure."""
    try:
        return await send_sms(phone, message)
    except Exception as exc:
        logger.warning("Failed to send SMS to %s: %s", phone, exc)
        return False
