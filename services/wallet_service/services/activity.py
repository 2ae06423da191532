"""Best-effort wallet activity trail.

Call after the primary change has been committed: a failure here is logged and
rolled back on its own, it never fails the request.
"""

import uuid
from typing import Optional

from libs.common.logging import get_logger
from services.wallet_service.models import WalletActivityAction, WalletActivityLog
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def log_wallet_activity(
    db: AsyncSession,
    *,
    user_id: str,
    action: WalletActivityAction,
    wallet_id: Optional[uuid.UUID] = None,
    amount: Optional[int] = None,
    balance_before: Optional[int] = None,
    balance_after: Optional[int] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Optional[WalletActivityLog]:
    try:
        entry = WalletActivityLog(
            wallet_id=wallet_id,
            user_id=user_id,
            action=action,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        await db.commit()
        return entry
    except Exception as exc:
        logger.warning(
            "Failed to log wallet activity %s for %s: %s", action.value, user_id, exc
        )
        await db.rollback()
        return None
