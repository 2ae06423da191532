"""Aggregate counts behind the admin and developer dashboards.

"Today" and "this month" are calendar boundaries in the platform's business
timezone, converted to UTC before they reach the database.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from libs.common.datetime_utils import local_tz
from services.handover_service.models import EscrowStatus, EscrowTransaction
from services.listings_service.models import (
    Inspection,
    Lead,
    Property,
    PropertyStatus,
    VerificationStatus,
)
from services.users_service.models import User, UserRole
from services.wallet_service.models import Payout, PayoutStatus
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _sum(column, *conditions):
    return select(func.coalesce(func.sum(column), 0)).where(*conditions)


def day_bounds(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """UTC start of the current local day and of the next one."""
    local_now = (now or datetime.now(timezone.utc)).astimezone(local_tz())
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def month_start(now: Optional[datetime] = None) -> datetime:
    local_now = (now or datetime.now(timezone.utc)).astimezone(local_tz())
    start = local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc)


async def _user_stats(db: AsyncSession) -> dict:
    total, developers, creators, buyers = (
        await db.execute(
            select(
                func.count(),
                _count_where(User.role == UserRole.DEVELOPER),
                _count_where(User.role == UserRole.CREATOR),
                _count_where(User.role == UserRole.BUYER),
            ).select_from(User)
        )
    ).one()
    return {
        "total": total,
        "developers": int(developers),
        "creators": int(creators),
        "buyers": int(buyers),
    }


async def _property_stats(db: AsyncSession) -> dict:
    verification = Property.verification_status
    total, verified, pending, rejected, sold = (
        await db.execute(
            select(
                func.count(),
                _count_where(verification == VerificationStatus.VERIFIED),
                _count_where(verification == VerificationStatus.PENDING),
                _count_where(verification == VerificationStatus.REJECTED),
                _count_where(Property.status == PropertyStatus.SOLD),
            ).select_from(Property)
        )
    ).one()
    return {
        "total": total,
        "verified": int(verified),
        "pending_verification": int(pending),
        "rejected": int(rejected),
        "sold": int(sold),
    }


async def _financial_stats(db: AsyncSession) -> dict:
    escrow_held = await db.execute(
        _sum(EscrowTransaction.amount, EscrowTransaction.status == EscrowStatus.HELD)
    )
    pending = await db.execute(
        _sum(
            Payout.net_amount,
            Payout.status.in_((PayoutStatus.PENDING, PayoutStatus.PROCESSING)),
        )
    )
    completed = await db.execute(
        _sum(Payout.net_amount, Payout.status == PayoutStatus.COMPLETED)
    )
    return {
        "escrow_held": int(escrow_held.scalar()),
        "pending_payouts": int(pending.scalar()),
        "completed_payouts": int(completed.scalar()),
    }


async def _activity_stats(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    today, tomorrow = day_bounds(now)
    leads_today = await db.execute(
        select(func.count()).select_from(Lead).where(Lead.created_at >= today)
    )
    inspections_today = await db.execute(
        select(func.count())
        .select_from(Inspection)
        .where(Inspection.slot_time >= today, Inspection.slot_time < tomorrow)
    )
    sales = await db.execute(
        select(func.count())
        .select_from(EscrowTransaction)
        .where(
            EscrowTransaction.status == EscrowStatus.RELEASED,
            EscrowTransaction.released_at >= month_start(now),
        )
    )
    return {
        "leads_today": leads_today.scalar() or 0,
        "inspections_today": inspections_today.scalar() or 0,
        "sales_this_month": sales.scalar() or 0,
    }


async def admin_stats(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    return {
        "users": await _user_stats(db),
        "properties": await _property_stats(db),
        "financial": await _financial_stats(db),
        "activity": await _activity_stats(db, now),
    }


async def developer_counts(db: AsyncSession, *, developer_id: str) -> dict:
    """Listings, leads and inspections across properties owned by ``developer_id``."""
    owned = select(Property.id).where(Property.developer_id == developer_id)
    properties = await db.execute(
        select(func.count())
        .select_from(Property)
        .where(Property.developer_id == developer_id)
    )
    leads = await db.execute(
        select(func.count()).select_from(Lead).where(Lead.property_id.in_(owned))
    )
    inspections = await db.execute(
        select(func.count())
        .select_from(Inspection)
        .where(Inspection.property_id.in_(owned))
    )
    return {
        "properties_count": properties.scalar() or 0,
        "leads_count": leads.scalar() or 0,
        "inspections_count": inspections.scalar() or 0,
    }
