"""Promotion lifecycle: state transitions, lazy and batch expiry, metric tracking.

Expiry is checked two ways. Reads call :func:`check_and_expire` so a link is
never reported active past its expiry, and :func:`batch_expire_promotions`
sweeps everything on a schedule.
"""

import hashlib
import secrets
import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.promotions_service.models import (
    PromotionStatus,
    TrackingEvent,
    TrackingLink,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def generate_unique_code(creator_id: str, property_id: uuid.UUID) -> str:
    """16 hex chars of sha256(creator, property, time, random)."""
    seed = f"{creator_id}{property_id}{utc_now().timestamp()}{secrets.token_hex(8)}"
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:16]


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return False
    return as_utc(expires_at) < (now or utc_now())


def is_promotion_active(
    status: PromotionStatus,
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> bool:
    """Active means status ``active`` and not past its expiry."""
    return status == PromotionStatus.ACTIVE and not is_expired(expires_at, now)


def _log_transition(link: TrackingLink, previous: PromotionStatus, action: str) -> None:
    logger.info(
        "Promotion %s: %s -> %s",
        link.id,
        previous.value,
        link.status.value,
        extra={
            "extra_fields": {
                "promotion_id": str(link.id),
                "creator_id": link.creator_id,
                "action": action,
            }
        },
    )


async def check_and_expire(
    db: AsyncSession, link: TrackingLink, *, commit: bool = True
) -> PromotionStatus:
    """Expire ``link`` in place if it is active and past its expiry.

    With ``commit=False`` the change is only flushed, leaving the caller's unit
    of work open.
    """
    if link.status != PromotionStatus.ACTIVE or not is_expired(link.expires_at):
        return link.status
    now = utc_now()
    link.status = PromotionStatus.EXPIRED
    link.expired_at = now
    if commit:
        await db.commit()
    else:
        await db.flush()
    _log_transition(link, PromotionStatus.ACTIVE, "auto-expire")
    return link.status


async def batch_expire_promotions(db: AsyncSession) -> int:
    """Expire every active link whose expiry has passed. Returns the number expired."""
    now = utc_now()
    result = await db.execute(
        update(TrackingLink)
        .where(
            TrackingLink.status == PromotionStatus.ACTIVE,
            TrackingLink.expires_at.is_not(None),
            TrackingLink.expires_at < now,
        )
        .values(status=PromotionStatus.EXPIRED, expired_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    count = result.rowcount or 0
    if count:
        logger.info("Batch-expired %d promotion(s)", count)
    return count


# ---------------------------------------------------------------------------
# Creator actions
# ---------------------------------------------------------------------------


async def get_creator_link(
    db: AsyncSession, *, link_id: uuid.UUID, creator_id: str
) -> TrackingLink:
    result = await db.execute(
        select(TrackingLink).where(
            TrackingLink.id == link_id, TrackingLink.creator_id == creator_id
        )
    )
    link = result.scalar_one_or_none()
    if link is None:
        raise NotFoundError("Promotion")
    return link


async def pause(db: AsyncSession, link: TrackingLink) -> TrackingLink:
    await check_and_expire(db, link)
    if link.status != PromotionStatus.ACTIVE:
        raise ValidationError(
            f'Cannot pause promotion. Current status is "{link.status.value}". '
            "Only active promotions can be paused."
        )
    link.status = PromotionStatus.PAUSED
    link.paused_at = utc_now()
    await db.commit()
    _log_transition(link, PromotionStatus.ACTIVE, "pause")
    return link


async def resume(db: AsyncSession, link: TrackingLink) -> TrackingLink:
    previous = link.status
    if previous not in (PromotionStatus.PAUSED, PromotionStatus.EXPIRED):
        raise ValidationError(
            f'Cannot resume promotion. Current status is "{previous.value}". '
            "Only paused or expired promotions can be resumed."
        )
    if previous == PromotionStatus.EXPIRED and is_expired(link.expires_at):
        raise ValidationError(
            "Cannot resume expired promotion. Please extend the expiration date first."
        )
    link.status = PromotionStatus.ACTIVE
    link.paused_at = None
    link.expired_at = None
    await db.commit()
    # A paused link whose expiry passed meanwhile goes straight to expired
    await check_and_expire(db, link)
    _log_transition(link, previous, "resume")
    return link


async def stop(db: AsyncSession, link: TrackingLink) -> TrackingLink:
    previous = link.status
    if previous == PromotionStatus.STOPPED:
        raise ValidationError("Promotion is already stopped. This action is irreversible.")
    if previous == PromotionStatus.EXPIRED:
        raise ValidationError("Cannot stop expired promotion. Please resume it first if needed.")
    link.status = PromotionStatus.STOPPED
    link.stopped_at = utc_now()
    await db.commit()
    _log_transition(link, previous, "stop")
    return link


async def extend(db: AsyncSession, link: TrackingLink, expires_at: datetime) -> TrackingLink:
    """Move the expiry forward. Stopped links stay stopped."""
    expires_at = as_utc(expires_at)
    if expires_at <= utc_now():
        raise ValidationError("Expiration date must be in the future")
    if link.status == PromotionStatus.STOPPED:
        raise ValidationError("Cannot extend a stopped promotion")
    link.expires_at = expires_at
    await db.commit()
    return link


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


async def find_link(
    db: AsyncSession,
    *,
    unique_code: str,
    property_id: Optional[uuid.UUID] = None,
) -> Optional[TrackingLink]:
    query = select(TrackingLink).where(TrackingLink.unique_code == unique_code)
    if property_id is not None:
        query = query.where(TrackingLink.property_id == property_id)
    return (await db.execute(query)).scalar_one_or_none()


async def record_event(
    db: AsyncSession, link: TrackingLink, event: TrackingEvent
) -> tuple[bool, Optional[str]]:
    """
    Increment one counter if the promotion is active.

    Returns ``(tracked, reason)``. Inactive links are auto-expired when due
    and left untouched otherwise. The increment is a single UPDATE so
    concurrent hits are all counted. Caller commits.
    """
    expired = is_expired(link.expires_at)
    if link.status != PromotionStatus.ACTIVE or expired:
        if link.status == PromotionStatus.ACTIVE and expired:
            await check_and_expire(db, link, commit=False)
            return False, "Promotion is expired"
        return False, f"Promotion is {link.status.value}"

    column = getattr(TrackingLink, event.value)
    await db.execute(
        update(TrackingLink)
        .where(TrackingLink.id == link.id)
        .values({column: column + 1})
        .execution_options(synchronize_session=False)
    )
    return True, None


async def record_event_for_creator(
    db: AsyncSession,
    *,
    creator_id: str,
    property_id: uuid.UUID,
    event: TrackingEvent,
) -> bool:
    """Attribute ``event`` to the creator's link for ``property_id``, if any.

    Caller commits.
    """
    result = await db.execute(
        select(TrackingLink).where(
            TrackingLink.creator_id == creator_id,
            TrackingLink.property_id == property_id,
        )
    )
    link = result.scalar_one_or_none()
    if link is None:
        return False
    tracked, _ = await record_event(db, link, event)
    return tracked
