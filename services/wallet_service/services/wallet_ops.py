"""Core wallet operations: lookups and atomic balance movements.

Every balance change is a single ``UPDATE wallets SET x = x +/- :amount``
guarded in its WHERE clause, so concurrent requests cannot lose updates and a
debit can never drive a balance negative.
"""

import uuid
from typing import Optional

from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import (
    Transaction,
    TransactionStatus,
    Wallet,
    WalletUserType,
)
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def generate_reference() -> str:
    """Globally unique gateway reference: ``reach_<uuid4>``."""
    return f"reach_{uuid.uuid4()}"


def wallet_user_type(account_role: str) -> WalletUserType:
    try:
        return WalletUserType(account_role)
    except ValueError:
        return WalletUserType.BUYER


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_wallet(db: AsyncSession, user_id: str) -> Optional[Wallet]:
    result = await db.execute(select(Wallet).where(Wallet.user_id == user_id))
    return result.scalar_one_or_none()


async def require_wallet(db: AsyncSession, user_id: str) -> Wallet:
    wallet = await get_wallet(db, user_id)
    if wallet is None:
        raise NotFoundError("Wallet")
    return wallet


async def require_setup_wallet(db: AsyncSession, user_id: str) -> Wallet:
    """Wallet that has a PIN configured; money-out operations need one."""
    wallet = await get_wallet(db, user_id)
    if wallet is None:
        raise ValidationError("Wallet not found. Please set up your wallet first.")
    if not wallet.is_setup or not wallet.pin_hash:
        raise ValidationError("Wallet is not set up")
    if not wallet.is_active:
        raise ValidationError("Wallet is not active")
    return wallet


async def get_or_create_wallet(
    db: AsyncSession,
    *,
    user_id: str,
    user_type: WalletUserType = WalletUserType.BUYER,
) -> Wallet:
    """Return the user's wallet, creating an empty one on first use."""
    wallet = await get_wallet(db, user_id)
    if wallet:
        return wallet

    wallet = Wallet(
        user_id=user_id,
        user_type=user_type,
        available_balance=0,
        locked_balance=0,
    )
    db.add(wallet)
    await db.commit()
    await db.refresh(wallet)

    logger.info("Created wallet %s for user %s (%s)", wallet.id, user_id, user_type.value)
    return wallet


async def lock_wallet_row(db: AsyncSession, wallet_id: uuid.UUID) -> Wallet:
    """SELECT ... FOR UPDATE on the wallet row (no-op lock on sqlite)."""
    result = await db.execute(
        select(Wallet)
        .where(Wallet.id == wallet_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    wallet = result.scalar_one_or_none()
    if wallet is None:
        raise NotFoundError("Wallet")
    return wallet


# ---------------------------------------------------------------------------
# Atomic balance movements (caller commits)
# ---------------------------------------------------------------------------


async def _apply(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt.execution_options(synchronize_session=False))
    return result.rowcount


async def move_available_to_locked(
    db: AsyncSession, *, wallet_id: uuid.UUID, amount: int
) -> None:
    """Reserve ``amount`` for an in-flight withdrawal."""
    updated = await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id, Wallet.available_balance >= amount)
        .values(
            available_balance=Wallet.available_balance - amount,
            locked_balance=Wallet.locked_balance + amount,
        ),
    )
    if not updated:
        raise ValidationError("Insufficient wallet balance")


async def debit_available(
    db: AsyncSession, *, wallet_id: uuid.UUID, amount: int
) -> None:
    updated = await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id, Wallet.available_balance >= amount)
        .values(available_balance=Wallet.available_balance - amount),
    )
    if not updated:
        raise ValidationError("Insufficient wallet balance")


async def credit_available(
    db: AsyncSession, *, wallet_id: uuid.UUID, amount: int
) -> None:
    await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id)
        .values(available_balance=Wallet.available_balance + amount),
    )


async def credit_locked(db: AsyncSession, *, wallet_id: uuid.UUID, amount: int) -> None:
    """Hold incoming funds (escrow) without making them spendable."""
    await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id)
        .values(locked_balance=Wallet.locked_balance + amount),
    )


def _locked_minus(amount: int):
    # max(0, locked - amount), portable across Postgres and sqlite
    return case(
        (Wallet.locked_balance >= amount, Wallet.locked_balance - amount),
        else_=0,
    )


async def release_locked(db: AsyncSession, *, wallet_id: uuid.UUID, amount: int) -> None:
    """Funds left the platform (transfer settled): drop them from locked."""
    await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id)
        .values(locked_balance=_locked_minus(amount)),
    )


async def unlock_to_available(
    db: AsyncSession, *, wallet_id: uuid.UUID, amount: int
) -> None:
    """Return locked funds to available (failed transfer, released escrow)."""
    await _apply(
        db,
        update(Wallet)
        .where(Wallet.id == wallet_id)
        .values(
            available_balance=Wallet.available_balance + amount,
            locked_balance=_locked_minus(amount),
        ),
    )


# ---------------------------------------------------------------------------
# Status transitions (caller commits)
# ---------------------------------------------------------------------------


async def claim_transaction(
    db: AsyncSession,
    *,
    txn: Transaction,
    from_statuses: tuple[TransactionStatus, ...],
    **values,
) -> bool:
    """Move ``txn`` out of ``from_statuses`` with one conditional UPDATE.

    Returns True only for the caller whose UPDATE matched the row; every
    other concurrent caller gets False and must not move money. ``txn`` is
    not refreshed here.
    """
    result = await db.execute(
        update(Transaction)
        .where(Transaction.id == txn.id, Transaction.status.in_(from_statuses))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
