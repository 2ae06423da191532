"""Manually reviewed payouts (admin withdrawals).

Lifecycle: pending -> processing -> completed, or pending -> cancelled.
The requested amount leaves ``available_balance`` when the payout is created;
a rejection puts ``net_amount`` back with a single atomic UPDATE committed in
the same database transaction as the status change.
"""

import math
import uuid
from dataclasses import dataclass
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import (
    AdminAction,
    AdminActionType,
    BankAccount,
    Payout,
    PayoutStatus,
    Wallet,
    WalletActivityAction,
)
from services.wallet_service.paystack_client import PaystackClient, PaystackError
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.bank_accounts import get_bank_account
from services.wallet_service.services.limits import check_withdrawal_limits
from services.wallet_service.services.pin import verify_pin
from services.wallet_service.services.wallet_ops import (
    credit_available,
    debit_available,
    generate_reference,
)
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class AuditContext:
    """Who performed an admin action and from where."""

    admin: AuthUser
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def _audit(
    ctx: AuditContext, action: AdminActionType, payout: Payout, details: dict
) -> AdminAction:
    return AdminAction(
        admin_id=ctx.admin.user_id,
        action=action,
        entity="payout",
        entity_id=str(payout.id),
        details=details,
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )


# ---------------------------------------------------------------------------
# Requesting
# ---------------------------------------------------------------------------


async def request_payout(
    db: AsyncSession,
    *,
    wallet: Wallet,
    amount: int,
    bank_account_id: uuid.UUID,
    pin: str,
) -> Payout:
    """Queue a payout for admin review and debit the wallet immediately.

    Reviewed payouts are fee-free, so ``net_amount`` equals ``amount``.
    """
    await verify_pin(db, wallet=wallet, pin=pin)
    await check_withdrawal_limits(db, wallet=wallet, amount=amount)
    account = await get_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)

    payout = Payout(
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        bank_account_id=account.id,
        amount=amount,
        fee=0,
        net_amount=amount,
        status=PayoutStatus.PENDING,
        reference=generate_reference(),
    )
    db.add(payout)
    await db.flush()
    try:
        await debit_available(db, wallet_id=wallet.id, amount=amount)
    except ValidationError:
        await db.rollback()
        raise
    await db.commit()
    await db.refresh(payout)

    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.PAYOUT_REQUESTED,
        amount=-amount,
        details={"payout_id": str(payout.id)},
    )
    return payout


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


async def list_payouts(
    db: AsyncSession,
    *,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
) -> dict:
    query = select(Payout)
    count_query = select(func.count()).select_from(Payout)
    if status and status != "all":
        try:
            status_enum = PayoutStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown withdrawal status: {status}")
        query = query.where(Payout.status == status_enum)
        count_query = count_query.where(Payout.status == status_enum)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(Payout.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return {
        "withdrawals": list(result.scalars().all()),
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if total else 0,
    }


async def _get_payout_for_update(db: AsyncSession, payout_id: uuid.UUID) -> Payout:
    result = await db.execute(
        select(Payout)
        .where(Payout.id == payout_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    payout = result.scalar_one_or_none()
    if payout is None:
        raise NotFoundError("Withdrawal")
    return payout


async def approve_payout(
    db: AsyncSession,
    *,
    payout_id: uuid.UUID,
    ctx: AuditContext,
    paystack: Optional[PaystackClient] = None,
) -> Payout:
    """pending -> processing; attempt the transfer when the account has a recipient."""
    payout = await _get_payout_for_update(db, payout_id)
    if payout.status != PayoutStatus.PENDING:
        raise ValidationError("Withdrawal is not pending")

    now = utc_now()
    payout.status = PayoutStatus.PROCESSING
    payout.processed_by = ctx.admin.user_id
    payout.processed_at = now
    db.add(
        _audit(
            ctx,
            AdminActionType.WITHDRAWAL_APPROVED,
            payout,
            {"amount": payout.amount, "net_amount": payout.net_amount},
        )
    )
    await db.commit()

    account = await db.get(BankAccount, payout.bank_account_id) if payout.bank_account_id else None
    if paystack is not None and account is not None and account.recipient_code:
        try:
            transfer = await paystack.initiate_transfer(
                recipient_code=account.recipient_code,
                amount_kobo=payout.net_amount,
                reason="Reach payout",
                reference=payout.reference,
            )
            payout.transfer_code = transfer.transfer_code or None
        except PaystackError as exc:
            logger.error("Payout %s transfer failed: %s", payout.id, exc.message)
            payout.failure_reason = f"Transfer not initiated: {exc.message}"
        await db.commit()
    else:
        logger.info("Payout %s approved for manual settlement", payout.id)

    await db.refresh(payout)
    return payout


async def reject_payout(
    db: AsyncSession,
    *,
    payout_id: uuid.UUID,
    reason: Optional[str],
    ctx: AuditContext,
) -> Payout:
    """pending -> cancelled, refunding exactly ``net_amount`` to available balance."""
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required")

    payout = await _get_payout_for_update(db, payout_id)
    if payout.status != PayoutStatus.PENDING:
        raise ValidationError("Withdrawal is not pending")

    # Conditional update: only one concurrent rejection can flip the status
    flipped = await db.execute(
        update(Payout)
        .where(Payout.id == payout.id, Payout.status == PayoutStatus.PENDING)
        .values(
            status=PayoutStatus.CANCELLED,
            failure_reason=reason.strip(),
            processed_by=ctx.admin.user_id,
            processed_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    if not flipped.rowcount:
        await db.rollback()
        raise ValidationError("Withdrawal is not pending")

    await credit_available(db, wallet_id=payout.wallet_id, amount=payout.net_amount)
    db.add(
        _audit(
            ctx,
            AdminActionType.WITHDRAWAL_REJECTED,
            payout,
            {"reason": reason.strip(), "refunded": payout.net_amount},
        )
    )
    await db.commit()
    await db.refresh(payout)

    await log_wallet_activity(
        db,
        user_id=payout.user_id,
        wallet_id=payout.wallet_id,
        action=WalletActivityAction.PAYOUT_REFUNDED,
        amount=payout.net_amount,
        details={"payout_id": str(payout.id), "reason": reason.strip()},
    )
    return payout


async def complete_payout(
    db: AsyncSession, *, payout_id: uuid.UUID, ctx: AuditContext
) -> Payout:
    """processing -> completed once the money has been sent."""
    payout = await _get_payout_for_update(db, payout_id)
    if payout.status != PayoutStatus.PROCESSING:
        raise ValidationError("Only processing withdrawals can be completed")

    payout.status = PayoutStatus.COMPLETED
    payout.completed_at = utc_now()
    db.add(_audit(ctx, AdminActionType.WITHDRAWAL_COMPLETED, payout, {}))
    await db.commit()
    await db.refresh(payout)
    return payout


async def handle_payout_transfer_event(
    db: AsyncSession, *, event: str, data: dict
) -> Optional[Payout]:
    """Settle or refund a reviewed payout from a transfer webhook."""
    reference = data.get("reference")
    if not reference:
        return None
    result = await db.execute(
        select(Payout).where(Payout.reference == reference).with_for_update()
    )
    payout = result.scalar_one_or_none()
    if payout is None or payout.status != PayoutStatus.PROCESSING:
        return payout

    if event == "transfer.success":
        payout.status = PayoutStatus.COMPLETED
        payout.completed_at = utc_now()
    else:
        payout.status = PayoutStatus.FAILED
        payout.failure_reason = data.get("reason") or f"Paystack {event}"
        await credit_available(db, wallet_id=payout.wallet_id, amount=payout.net_amount)
    await db.commit()
    return payout
