"""On-demand and webhook-driven reconciliation of gateway transactions.

A transaction already marked successful is returned as stored and never
re-verified against the gateway.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import GatewayError, NotFoundError
from libs.common.logging import get_logger
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
)
from services.wallet_service.paystack_client import (
    PaystackClient,
    PaystackError,
    VerifiedPayment,
)
from services.wallet_service.services.deposits import (
    GATEWAY_FAILURE_STATUSES,
    IN_FLIGHT,
    apply_verified_deposit,
)
from services.wallet_service.services.payouts import handle_payout_transfer_event
from services.wallet_service.services.wallet_ops import claim_transaction
from services.wallet_service.services.withdrawals import (
    fail_withdrawal,
    find_transfer_transaction,
    settle_withdrawal,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SETTLED = (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED)


async def find_by_reference(db: AsyncSession, reference: str) -> Optional[Transaction]:
    result = await db.execute(
        select(Transaction)
        .where(
            or_(
                Transaction.reference == reference,
                Transaction.gateway_reference == reference,
            )
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _complete_purchase_safely(db: AsyncSession, txn: Transaction) -> None:
    from services.handover_service.services.purchase import complete_property_purchase

    try:
        await complete_property_purchase(db, transaction=txn)
    except Exception:
        # The payment itself is settled; an admin can re-run completion.
        logger.exception("Property purchase completion failed for %s", txn.reference)
        await db.rollback()


async def apply_payment_success(
    db: AsyncSession, *, txn: Transaction, verified: VerifiedPayment
) -> None:
    """Mark a collection successful and run its follow-up (credit or purchase completion).

    Only the caller that moves the collection out of pending or processing runs
    the follow-up.
    """
    if txn.category == TransactionCategory.DEPOSIT:
        await apply_verified_deposit(db, txn=txn, verified=verified)
        return
    if txn.status in SETTLED:
        return
    if verified.amount and verified.amount != txn.amount:
        logger.error(
            "Collection %s amount mismatch: paid %s, expected %s",
            txn.reference,
            verified.amount,
            txn.amount,
        )
        await claim_transaction(
            db,
            txn=txn,
            from_statuses=IN_FLIGHT,
            status=TransactionStatus.FAILED,
            failure_reason="Amount mismatch",
            failed_at=utc_now(),
        )
        await db.commit()
        await db.refresh(txn)
        return

    claimed = await claim_transaction(
        db,
        txn=txn,
        from_statuses=IN_FLIGHT,
        status=TransactionStatus.SUCCESSFUL,
        gateway_status=verified.status,
        completed_at=utc_now(),
        webhook_payload={**(txn.webhook_payload or {}), "verification": verified.raw},
    )
    if not claimed:
        await db.commit()
        await db.refresh(txn)
        return
    await db.commit()
    await db.refresh(txn)

    if (txn.txn_metadata or {}).get("property_id"):
        await _complete_purchase_safely(db, txn)


async def _mark_failed(db: AsyncSession, txn: Transaction, verified: VerifiedPayment) -> None:
    await claim_transaction(
        db,
        txn=txn,
        from_statuses=IN_FLIGHT,
        status=TransactionStatus.FAILED,
        gateway_status=verified.status,
        failure_reason=verified.gateway_response or f"Payment {verified.status}",
        failed_at=utc_now(),
    )
    await db.commit()


async def verify_transaction(
    db: AsyncSession,
    *,
    transaction_id: uuid.UUID,
    requester: AuthUser,
    paystack: PaystackClient,
) -> Transaction:
    txn = await db.get(Transaction, transaction_id)
    if txn is None or (txn.user_id != requester.user_id and not requester.is_admin):
        raise NotFoundError("Transaction")

    if txn.status == TransactionStatus.SUCCESSFUL:
        return txn

    reference = txn.gateway_reference or txn.reference

    if txn.category == TransactionCategory.WITHDRAWAL:
        try:
            transfer = await paystack.verify_transfer(reference)
        except PaystackError as exc:
            raise GatewayError(f"Transfer verification failed: {exc.message}")
        payload = {"reference": transfer.reference, "status": transfer.status}
        if transfer.status == "success":
            await settle_withdrawal(db, txn=txn, payload=payload)
        elif transfer.status in ("failed", "reversed"):
            await fail_withdrawal(db, txn=txn, payload=payload, event=f"transfer.{transfer.status}")
        await db.refresh(txn)
        return txn

    try:
        verified = await paystack.verify_transaction(reference)
    except PaystackError as exc:
        raise GatewayError(f"Payment verification failed: {exc.message}")

    if verified.is_successful:
        await apply_payment_success(db, txn=txn, verified=verified)
    elif verified.status in GATEWAY_FAILURE_STATUSES and txn.status not in SETTLED:
        await _mark_failed(db, txn, verified)

    await db.refresh(txn)
    return txn


# ---------------------------------------------------------------------------
# Webhook dispatch
# ---------------------------------------------------------------------------


async def handle_paystack_event(
    db: AsyncSession, *, event: str, data: dict, paystack: PaystackClient
) -> None:
    """Apply one verified Paystack webhook event. Unknown events are ignored."""
    if event in ("transfer.success", "transfer.failed", "transfer.reversed"):
        txn = await find_transfer_transaction(db, data)
        if txn is not None:
            if event == "transfer.success":
                await settle_withdrawal(db, txn=txn, payload=data)
            else:
                await fail_withdrawal(db, txn=txn, payload=data, event=event)
            return
        await handle_payout_transfer_event(db, event=event, data=data)
        return

    if event == "charge.success":
        reference = data.get("reference")
        txn = await find_by_reference(db, reference) if reference else None
        if txn is None:
            logger.info("charge.success for unknown reference %s", reference)
            return
        if txn.status in SETTLED:
            return
        # Never trust the webhook body alone for crediting money
        try:
            verified = await paystack.verify_transaction(txn.gateway_reference or txn.reference)
        except PaystackError as exc:
            logger.error("Could not verify %s after charge.success: %s", reference, exc.message)
            return
        if verified.is_successful:
            txn.webhook_received = True
            await apply_payment_success(db, txn=txn, verified=verified)
        return

    logger.info("Ignoring Paystack event %s", event)
