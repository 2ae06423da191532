"""Payout bank accounts: verification, primary selection and removal."""

import uuid
from typing import Optional

from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import BankAccount, Wallet
from services.wallet_service.paystack_client import PaystackClient, PaystackError
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MAX_BANK_ACCOUNTS = 3


async def list_bank_accounts(db: AsyncSession, *, wallet: Wallet) -> list[BankAccount]:
    result = await db.execute(
        select(BankAccount)
        .where(BankAccount.wallet_id == wallet.id)
        .order_by(BankAccount.is_primary.desc(), BankAccount.created_at)
    )
    return list(result.scalars().all())


async def get_bank_account(
    db: AsyncSession, *, wallet: Wallet, bank_account_id: uuid.UUID
) -> BankAccount:
    result = await db.execute(
        select(BankAccount).where(
            BankAccount.id == bank_account_id, BankAccount.wallet_id == wallet.id
        )
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError("Bank account")
    return account


async def add_bank_account(
    db: AsyncSession,
    *,
    wallet: Wallet,
    bank_code: str,
    account_number: str,
    bank_name: Optional[str],
    paystack: PaystackClient,
) -> BankAccount:
    """Verify an account with Paystack and attach it to the wallet.

    The first account becomes primary. Recipient creation is best-effort; a
    missing recipient code is filled in on the first withdrawal.
    """
    count = (
        await db.execute(
            select(func.count())
            .select_from(BankAccount)
            .where(BankAccount.wallet_id == wallet.id)
        )
    ).scalar() or 0
    if count >= MAX_BANK_ACCOUNTS:
        raise ValidationError(f"Maximum of {MAX_BANK_ACCOUNTS} bank accounts allowed")

    duplicate = await db.execute(
        select(BankAccount.id).where(
            BankAccount.wallet_id == wallet.id,
            BankAccount.account_number == account_number,
        )
    )
    if duplicate.scalar_one_or_none():
        raise ValidationError("This bank account is already added")

    try:
        resolved = await paystack.resolve_account(account_number, bank_code)
    except PaystackError as exc:
        logger.info("Bank account resolve failed for %s/%s: %s", bank_code, account_number, exc)
        raise ValidationError("Could not verify bank account") from exc

    recipient_code = None
    resolved_bank_name = bank_name
    try:
        recipient = await paystack.create_transfer_recipient(
            account_number=account_number,
            bank_code=bank_code,
            name=resolved.account_name,
        )
        recipient_code = recipient.recipient_code or None
        resolved_bank_name = bank_name or recipient.bank_name
    except PaystackError as exc:
        logger.warning(
            "Transfer recipient creation failed for wallet %s: %s", wallet.id, exc
        )

    account = BankAccount(
        wallet_id=wallet.id,
        bank_code=bank_code,
        bank_name=resolved_bank_name or bank_code,
        account_number=account_number,
        account_name=resolved.account_name,
        recipient_code=recipient_code,
        is_verified=True,
        is_primary=count == 0,
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)

    logger.info("Added bank account %s to wallet %s (primary=%s)", account.id, wallet.id, account.is_primary)
    return account


async def set_primary_bank_account(
    db: AsyncSession, *, wallet: Wallet, bank_account_id: uuid.UUID
) -> BankAccount:
    account = await get_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)

    await db.execute(
        update(BankAccount)
        .where(BankAccount.wallet_id == wallet.id, BankAccount.id != account.id)
        .values(is_primary=False)
        .execution_options(synchronize_session=False)
    )
    account.is_primary = True
    await db.commit()
    await db.refresh(account)
    return account


async def delete_bank_account(
    db: AsyncSession, *, wallet: Wallet, bank_account_id: uuid.UUID
) -> Optional[BankAccount]:
    """Remove an account. Returns the account promoted to primary, if any.

    Removing the primary promotes the oldest remaining account so a wallet
    with accounts always has exactly one primary.
    """
    account = await get_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)
    was_primary = account.is_primary

    await db.delete(account)
    await db.flush()

    promoted = None
    if was_primary:
        result = await db.execute(
            select(BankAccount)
            .where(BankAccount.wallet_id == wallet.id)
            .order_by(BankAccount.created_at)
            .limit(1)
        )
        promoted = result.scalar_one_or_none()
        if promoted:
            promoted.is_primary = True

    await db.commit()
    if promoted:
        await db.refresh(promoted)
    return promoted


async def ensure_recipient_code(
    db: AsyncSession, *, account: BankAccount, paystack: PaystackClient
) -> str:
    """Create the Paystack transfer recipient for ``account`` if it has none yet."""
    if account.recipient_code:
        return account.recipient_code

    try:
        recipient = await paystack.create_transfer_recipient(
            account_number=account.account_number,
            bank_code=account.bank_code,
            name=account.account_name,
        )
    except PaystackError as exc:
        raise ValidationError(
            "Failed to set up bank account for transfer. Please try again."
        ) from exc

    if not recipient.recipient_code:
        raise ValidationError("Failed to set up bank account for transfer. Please try again.")

    account.recipient_code = recipient.recipient_code
    await db.commit()
    return account.recipient_code
