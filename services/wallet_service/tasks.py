"""
Background tasks for the wallet service.

Handles:
- Reconciling deposits whose checkout never came back (no redirect, no webhook)
"""

from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.wallet_service.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from services.wallet_service.paystack_client import PaystackClient, PaystackError
from services.wallet_service.services.deposits import (
    GATEWAY_FAILURE_STATUSES,
    IN_FLIGHT,
    STALE_DEPOSIT_AFTER,
)
from services.wallet_service.services.verification import apply_payment_success
from services.wallet_service.services.wallet_ops import claim_transaction
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

RECONCILE_BATCH_SIZE = 100


async def _reconcile(db: AsyncSession, paystack: PaystackClient) -> dict:
    cutoff = utc_now() - STALE_DEPOSIT_AFTER
    result = await db.execute(
        select(Transaction)
        .where(
            Transaction.type == TransactionType.CREDIT,
            Transaction.status == TransactionStatus.PENDING,
            Transaction.created_at < cutoff,
        )
        .order_by(Transaction.created_at)
        .limit(RECONCILE_BATCH_SIZE)
    )
    stats = {"checked": 0, "settled": 0, "failed": 0}
    for txn in result.scalars().all():
        stats["checked"] += 1
        try:
            verified = await paystack.verify_transaction(
                txn.gateway_reference or txn.reference
            )
        except PaystackError as exc:
            logger.warning("Could not reconcile %s: %s", txn.reference, exc.message)
            continue

        if verified.is_successful:
            await apply_payment_success(db, txn=txn, verified=verified)
            stats["settled"] += 1
        elif verified.status in GATEWAY_FAILURE_STATUSES:
            failed = await claim_transaction(
                db,
                txn=txn,
                from_statuses=IN_FLIGHT,
                status=TransactionStatus.FAILED,
                gateway_status=verified.status,
                failure_reason=verified.gateway_response or "Checkout abandoned",
                failed_at=utc_now(),
            )
            await db.commit()
            if failed:
                stats["failed"] += 1
    return stats


async def reconcile_pending_collections(
    db: Optional[AsyncSession] = None,
    paystack: Optional[PaystackClient] = None,
) -> dict:
    """Re-verify stale pending collections (deposits and purchases) with Paystack."""
    paystack = paystack or PaystackClient()
    if db is not None:
        return await _reconcile(db, paystack)
    async with AsyncSessionLocal() as session:
        stats = await _reconcile(session, paystack)
    logger.info("Pending collection reconciliation: %s", stats)
    return stats
