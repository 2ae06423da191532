"""Withdrawal limits: per-transaction, daily and monthly caps per user type."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from libs.common.currency import KOBO_PER_NAIRA, format_naira
from libs.common.datetime_utils import local_tz, utc_now
from libs.common.errors import ValidationError
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    Wallet,
    WithdrawalLimit,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# Withdrawals in these statuses count towards usage
COUNTED_STATUSES = (
    TransactionStatus.PENDING,
    TransactionStatus.PROCESSING,
    TransactionStatus.COMPLETED,
    TransactionStatus.SUCCESSFUL,
)


@dataclass(frozen=True)
class Limits:
    min_amount: int
    max_per_transaction: int
    daily_limit: int
    monthly_limit: Optional[int]


DEFAULT_LIMITS = Limits(
    min_amount=1_000 * KOBO_PER_NAIRA,
    max_per_transaction=5_000_000 * KOBO_PER_NAIRA,
    daily_limit=10_000_000 * KOBO_PER_NAIRA,
    monthly_limit=50_000_000 * KOBO_PER_NAIRA,
)


async def get_limits(db: AsyncSession, wallet: Wallet) -> Limits:
    result = await db.execute(
        select(WithdrawalLimit).where(WithdrawalLimit.user_type == wallet.user_type)
    )
    row = result.scalar_one_or_none()
    if row is None:
        return DEFAULT_LIMITS
    return Limits(
        min_amount=row.min_amount,
        max_per_transaction=row.max_per_transaction,
        daily_limit=row.daily_limit,
        monthly_limit=row.monthly_limit or None,
    )


async def _withdrawn_since(db: AsyncSession, wallet: Wallet, since: datetime) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == wallet.user_id,
            Transaction.type == TransactionType.DEBIT,
            Transaction.category == TransactionCategory.WITHDRAWAL,
            Transaction.status.in_(COUNTED_STATUSES),
            Transaction.created_at >= since.astimezone(timezone.utc),
        )
    )
    return int(result.scalar() or 0)


def _start_of_day(now: datetime) -> datetime:
    local = now.astimezone(local_tz())
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


async def check_withdrawal_limits(
    db: AsyncSession, *, wallet: Wallet, amount: int
) -> Limits:
    """Raise ``ValidationError`` if ``amount`` breaches any configured limit."""
    limits = await get_limits(db, wallet)

    if amount < limits.min_amount:
        raise ValidationError(
            f"Minimum withdrawal amount is {format_naira(limits.min_amount)}"
        )
    if amount > limits.max_per_transaction:
        raise ValidationError(
            f"Maximum withdrawal per transaction is {format_naira(limits.max_per_transaction)}"
        )

    day_start = _start_of_day(utc_now())
    daily_total = await _withdrawn_since(db, wallet, day_start)
    if daily_total + amount > limits.daily_limit:
        raise ValidationError(
            f"Daily withdrawal limit exceeded. Maximum: {format_naira(limits.daily_limit)}"
        )

    if limits.monthly_limit:
        month_start = day_start.replace(day=1)
        monthly_total = await _withdrawn_since(db, wallet, month_start)
        if monthly_total + amount > limits.monthly_limit:
            raise ValidationError(
                f"Monthly withdrawal limit exceeded. Maximum: {format_naira(limits.monthly_limit)}"
            )

    return limits
