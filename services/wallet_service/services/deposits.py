"""Wallet top-ups collected through Paystack checkout."""

from datetime import timedelta
from typing import Optional

from libs.common.config import get_settings
from libs.common.currency import deposit_fee, validate_amount
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import ConflictError, GatewayError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    Wallet,
    WalletActivityAction,
)
from services.wallet_service.paystack_client import (
    PaymentInitialization,
    PaystackClient,
    PaystackError,
    VerifiedPayment,
)
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.wallet_ops import (
    claim_transaction,
    credit_available,
    generate_reference,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# A pending checkout older than this is treated as abandoned
STALE_DEPOSIT_AFTER = timedelta(minutes=5)

GATEWAY_FAILURE_STATUSES = {"failed", "abandoned", "reversed"}

IN_FLIGHT = (TransactionStatus.PENDING, TransactionStatus.PROCESSING)


def _callback_url() -> str:
    settings = get_settings()
    if settings.PAYSTACK_CALLBACK_URL:
        return settings.PAYSTACK_CALLBACK_URL
    return f"{settings.FRONTEND_URL.rstrip('/')}/wallet/callback"


async def _expire_stale_pending(
    db: AsyncSession, *, user_id: str
) -> Optional[Transaction]:
    """Fail abandoned pending deposits; return the still-fresh one, if any."""
    result = await db.execute(
        select(Transaction).where(
            Transaction.user_id == user_id,
            Transaction.category == TransactionCategory.DEPOSIT,
            Transaction.status == TransactionStatus.PENDING,
        )
    )
    cutoff = utc_now() - STALE_DEPOSIT_AFTER
    active = None
    for pending in result.scalars().all():
        if as_utc(pending.created_at) < cutoff:
            pending.status = TransactionStatus.FAILED
            pending.failure_reason = "Checkout abandoned"
            pending.failed_at = utc_now()
        else:
            active = pending
    await db.commit()
    return active


async def initialize_deposit(
    db: AsyncSession,
    *,
    wallet: Wallet,
    email: str,
    amount: int,
    paystack: PaystackClient,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[Transaction, PaymentInitialization]:
    error = validate_amount(amount, "deposit")
    if error:
        raise ValidationError(error)

    active = await _expire_stale_pending(db, user_id=wallet.user_id)
    if active:
        raise ConflictError(
            "You have a pending deposit. Complete it or try again in a few minutes."
        )

    fee = deposit_fee(amount)
    reference = generate_reference()
    txn = Transaction(
        wallet_id=wallet.id,
        user_id=wallet.user_id,
        type=TransactionType.CREDIT,
        category=TransactionCategory.DEPOSIT,
        amount=amount,
        fee=fee,
        net_amount=amount - fee,
        status=TransactionStatus.PENDING,
        reference=reference,
        description="Wallet top-up",
        txn_metadata={"type": "wallet_deposit", "wallet_id": str(wallet.id)},
    )
    db.add(txn)
    await db.commit()

    try:
        init = await paystack.initialize_transaction(
            email=email,
            amount_kobo=amount,
            reference=reference,
            callback_url=_callback_url(),
            metadata={
                "type": "wallet_deposit",
                "transaction_id": str(txn.id),
                "user_id": wallet.user_id,
            },
        )
    except PaystackError as exc:
        txn.status = TransactionStatus.FAILED
        txn.failure_reason = exc.message
        txn.failed_at = utc_now()
        await db.commit()
        raise GatewayError("Could not initialize payment. Please try again.")

    txn.gateway_reference = init.reference
    await db.commit()
    await db.refresh(txn)

    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.DEPOSIT_INITIATED,
        amount=amount,
        details={"reference": reference},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return txn, init


async def apply_verified_deposit(
    db: AsyncSession, *, txn: Transaction, verified: VerifiedPayment
) -> bool:
    """Credit ``net_amount`` to the wallet for a successful checkout, exactly once.

    The webhook, the redirect verification and the reconcile job can all race
    on the same deposit; only the caller that flips it out of pending or
    processing credits the wallet. Returns True when this call performed the
    credit.
    """
    if txn.status in (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED):
        return False
    if txn.status not in IN_FLIGHT:
        logger.warning(
            "Verified payment for deposit %s in status %s; not crediting",
            txn.reference,
            txn.status.value,
        )
        return False
    if verified.amount and verified.amount != txn.amount:
        logger.error(
            "Deposit %s amount mismatch: paid %s, expected %s",
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
        return False

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
        logger.info("Deposit %s already settled by another request", txn.reference)
        return False
    if txn.wallet_id:
        await credit_available(db, wallet_id=txn.wallet_id, amount=txn.net_amount)
    await db.commit()
    await db.refresh(txn)

    logger.info("Deposit %s credited (%s kobo)", txn.reference, txn.net_amount)
    await log_wallet_activity(
        db,
        user_id=txn.user_id,
        wallet_id=txn.wallet_id,
        action=WalletActivityAction.DEPOSIT_COMPLETED,
        amount=txn.net_amount,
        details={"reference": txn.reference},
    )
    return True


async def verify_deposit(
    db: AsyncSession,
    *,
    user_id: str,
    reference: str,
    paystack: PaystackClient,
) -> Transaction:
    """Client-triggered confirmation after the Paystack redirect."""
    result = await db.execute(
        select(Transaction).where(
            Transaction.reference == reference,
            Transaction.user_id == user_id,
            Transaction.category == TransactionCategory.DEPOSIT,
        )
    )
    txn = result.scalar_one_or_none()
    if txn is None:
        raise NotFoundError("Transaction")

    if txn.status not in (TransactionStatus.PENDING, TransactionStatus.PROCESSING):
        return txn

    try:
        verified = await paystack.verify_transaction(txn.gateway_reference or txn.reference)
    except PaystackError as exc:
        raise GatewayError(f"Payment verification failed: {exc.message}")

    if verified.is_successful:
        await apply_verified_deposit(db, txn=txn, verified=verified)
    elif verified.status in GATEWAY_FAILURE_STATUSES:
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

    await db.refresh(txn)
    return txn
