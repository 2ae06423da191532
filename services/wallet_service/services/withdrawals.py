"""Instant withdrawals: wallet -> bank via a Paystack transfer.

Flow: validate -> PIN -> limits -> reserve funds (available -> locked) ->
initiate transfer. The transfer webhook then settles (release locked) or
refunds (locked -> available).
"""

import uuid
from typing import Optional

from libs.common.currency import format_naira, validate_amount, withdrawal_fee
from libs.common.datetime_utils import utc_now
from libs.common.errors import GatewayError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    Wallet,
    WalletActivityAction,
)
from services.wallet_service.paystack_client import PaystackClient, PaystackError
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.bank_accounts import (
    ensure_recipient_code,
    get_bank_account,
)
from services.wallet_service.services.limits import check_withdrawal_limits
from services.wallet_service.services.pin import verify_pin
from services.wallet_service.services.wallet_ops import (
    claim_transaction,
    generate_reference,
    move_available_to_locked,
    release_locked,
    unlock_to_available,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

IN_FLIGHT = (TransactionStatus.PENDING, TransactionStatus.PROCESSING)
SETTLED = (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED)


async def initiate_withdrawal(
    db: AsyncSession,
    *,
    wallet: Wallet,
    amount: int,
    bank_account_id: uuid.UUID,
    pin: str,
    paystack: PaystackClient,
    narration: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Transaction:
    error = validate_amount(amount, "withdrawal")
    if error:
        raise ValidationError(error)

    await verify_pin(db, wallet=wallet, pin=pin)
    await check_withdrawal_limits(db, wallet=wallet, amount=amount)

    await db.refresh(wallet)
    fee = withdrawal_fee(amount)
    net_amount = amount - fee
    if wallet.available_balance < amount:
        raise ValidationError("Insufficient wallet balance")

    account = await get_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)
    recipient_code = await ensure_recipient_code(db, account=account, paystack=paystack)

    balance_before = wallet.available_balance
    reference = generate_reference()
    txn = Transaction(
        wallet_id=wallet.id,
        user_id=wallet.user_id,
        bank_account_id=account.id,
        type=TransactionType.DEBIT,
        category=TransactionCategory.WITHDRAWAL,
        amount=amount,
        fee=fee,
        net_amount=net_amount,
        status=TransactionStatus.PENDING,
        reference=reference,
        description=narration or f"Withdrawal to {account.bank_name}",
        txn_metadata={
            "bank_name": account.bank_name,
            "account_name": account.account_name,
            "account_number_last4": account.account_number[-4:],
        },
    )
    db.add(txn)
    await db.flush()
    try:
        await move_available_to_locked(db, wallet_id=wallet.id, amount=amount)
    except ValidationError:
        await db.rollback()
        raise
    await db.commit()

    try:
        transfer = await paystack.initiate_transfer(
            recipient_code=recipient_code,
            amount_kobo=net_amount,
            reason=narration or "Wallet withdrawal",
            reference=reference,
        )
    except PaystackError as exc:
        logger.error("Transfer initiation failed for %s: %s", reference, exc.message)
        await unlock_to_available(db, wallet_id=wallet.id, amount=amount)
        txn.status = TransactionStatus.FAILED
        txn.failure_reason = exc.message
        txn.failed_at = utc_now()
        await db.commit()
        await log_wallet_activity(
            db,
            user_id=wallet.user_id,
            wallet_id=wallet.id,
            action=WalletActivityAction.WITHDRAWAL_FAILED,
            amount=amount,
            details={"reference": reference, "error": exc.message},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise GatewayError(
            "Failed to initiate transfer. Your balance has been restored.",
            upstream_status=exc.status_code,
        )

    txn.status = TransactionStatus.PROCESSING
    txn.gateway_reference = transfer.reference or reference
    txn.transfer_code = transfer.transfer_code or None
    txn.gateway_status = transfer.status
    await db.commit()
    await db.refresh(txn)

    logger.info(
        "Withdrawal %s initiated: %s (fee %s) for user %s",
        reference,
        format_naira(amount),
        format_naira(fee),
        wallet.user_id,
    )
    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.WITHDRAWAL_INITIATED,
        amount=-amount,
        balance_before=balance_before,
        balance_after=balance_before - amount,
        details={"reference": reference, "transaction_id": str(txn.id)},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return txn


# ---------------------------------------------------------------------------
# Transfer webhooks
# ---------------------------------------------------------------------------


async def find_transfer_transaction(
    db: AsyncSession, data: dict
) -> Optional[Transaction]:
    """Match a transfer event by our reference, gateway reference or transfer code."""
    reference = data.get("reference")
    transfer_code = data.get("transfer_code")
    clauses = []
    if reference:
        clauses += [
            Transaction.reference == reference,
            Transaction.gateway_reference == reference,
        ]
    if transfer_code:
        clauses.append(Transaction.transfer_code == transfer_code)
    if not clauses:
        return None

    result = await db.execute(
        select(Transaction)
        .where(
            or_(*clauses),
            Transaction.category == TransactionCategory.WITHDRAWAL,
        )
        .with_for_update()
        .limit(1)
    )
    return result.scalar_one_or_none()


async def settle_withdrawal(
    db: AsyncSession, *, txn: Transaction, payload: dict
) -> bool:
    """transfer.success: mark successful and release the locked funds, once."""
    if txn.status in SETTLED:
        logger.info("Withdrawal %s already settled, ignoring duplicate webhook", txn.reference)
        return False
    if txn.status not in IN_FLIGHT:
        logger.warning(
            "transfer.success for withdrawal %s in status %s; ignoring",
            txn.reference,
            txn.status.value,
        )
        return False

    claimed = await claim_transaction(
        db,
        txn=txn,
        from_statuses=IN_FLIGHT,
        status=TransactionStatus.SUCCESSFUL,
        gateway_status=payload.get("status") or "success",
        completed_at=utc_now(),
        webhook_received=True,
        webhook_payload=payload,
    )
    if claimed and txn.wallet_id:
        await release_locked(db, wallet_id=txn.wallet_id, amount=txn.amount)
    await db.commit()
    await db.refresh(txn)
    if not claimed:
        logger.info("Withdrawal %s was settled by another request", txn.reference)
        return False

    await log_wallet_activity(
        db,
        user_id=txn.user_id,
        wallet_id=txn.wallet_id,
        action=WalletActivityAction.WITHDRAWAL_COMPLETED,
        amount=-txn.amount,
        details={"reference": txn.reference},
    )
    return True


async def fail_withdrawal(
    db: AsyncSession, *, txn: Transaction, payload: dict, event: str
) -> bool:
    """transfer.failed / transfer.reversed: refund locked -> available, once."""
    if txn.status not in IN_FLIGHT:
        logger.info(
            "%s for withdrawal %s in status %s; nothing to refund",
            event,
            txn.reference,
            txn.status.value,
        )
        return False

    claimed = await claim_transaction(
        db,
        txn=txn,
        from_statuses=IN_FLIGHT,
        status=TransactionStatus.FAILED,
        gateway_status=payload.get("status") or event.split(".")[-1],
        failure_reason=payload.get("reason") or f"Paystack {event}",
        failed_at=utc_now(),
        webhook_received=True,
        webhook_payload=payload,
    )
    if claimed and txn.wallet_id:
        await unlock_to_available(db, wallet_id=txn.wallet_id, amount=txn.amount)
    await db.commit()
    await db.refresh(txn)
    if not claimed:
        logger.info("%s for withdrawal %s already applied", event, txn.reference)
        return False

    await log_wallet_activity(
        db,
        user_id=txn.user_id,
        wallet_id=txn.wallet_id,
        action=WalletActivityAction.WITHDRAWAL_FAILED,
        amount=txn.amount,
        details={"reference": txn.reference, "event": event},
    )
    return True
