"""Back-office views over the transaction ledger."""

import math
from typing import Optional

from libs.common.errors import ValidationError
from services.users_service.models import User, UserRole
from services.wallet_service.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from services.wallet_service.schemas import (
    AdminTransactionResponse,
    AdminTransactionUser,
)
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

SETTLED = (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED)
OPEN = (TransactionStatus.PENDING, TransactionStatus.PROCESSING)


def _parse(enum_cls, value: Optional[str], label: str):
    if not value or value == "all":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {label}: {value}")


async def list_admin_transactions(
    db: AsyncSession,
    *,
    txn_type: Optional[str] = None,
    status: Optional[str] = None,
    user_type: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
) -> dict:
    """Every transaction on the platform, newest first, with its owner's profile.

    ``all`` (or omitting a filter) disables it. ``user_type`` matches the
    owner's marketplace role, so transactions of users without a profile row
    only show up unfiltered.
    """
    filters = []
    type_enum = _parse(TransactionType, txn_type, "transaction type")
    if type_enum is not None:
        filters.append(Transaction.type == type_enum)
    status_enum = _parse(TransactionStatus, status, "transaction status")
    if status_enum is not None:
        filters.append(Transaction.status == status_enum)
    role = _parse(UserRole, user_type, "user type")
    if role is not None:
        filters.append(User.role == role)

    joined = select(Transaction, User).outerjoin(User, User.id == Transaction.user_id)
    count_query = (
        select(func.count())
        .select_from(Transaction)
        .outerjoin(User, User.id == Transaction.user_id)
        .where(*filters)
    )
    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        joined.where(*filters)
        .order_by(Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    transactions = []
    for txn, owner in result.all():
        item = AdminTransactionResponse.model_validate(txn)
        if owner is not None:
            item.user = AdminTransactionUser.model_validate(owner)
        transactions.append(item)

    return {
        "transactions": transactions,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if total else 0,
    }


async def transaction_stats(db: AsyncSession) -> dict:
    """Headline counts for the admin ledger; volume counts settled money only."""
    row = (
        await db.execute(
            select(
                func.count(),
                func.coalesce(
                    func.sum(
                        case(
                            (Transaction.status.in_(SETTLED), Transaction.amount),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(
                    func.sum(case((Transaction.status.in_(OPEN), 1), else_=0)), 0
                ),
                func.coalesce(
                    func.sum(
                        case((Transaction.status == TransactionStatus.FAILED, 1), else_=0)
                    ),
                    0,
                ),
            ).select_from(Transaction)
        )
    ).one()
    total, volume, pending, failed = row
    return {
        "total": total,
        "total_volume": int(volume),
        "pending": int(pending),
        "failed": int(failed),
    }
