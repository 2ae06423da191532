"""Inspection booking and lifecycle.

booked -> confirmed -> completed, with cancellation from booked/confirmed and
withdrawal (buyer lost interest) only from completed. Completion is refused
before the scheduled slot time.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import as_utc, local_to_utc, local_tz, utc_now
from libs.common.errors import ForbiddenError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.common.phone import normalize_phone
from libs.common.sms import send_sms_safely
from services.listings_service.models import (
    ACTIVE_INSPECTION_STATUSES,
    TERMINAL_INSPECTION_STATUSES,
    Inspection,
    InspectionStatus,
    Lead,
    LeadStatus,
    Property,
)
from services.listings_service.services.properties import get_property
from services.notifications_service.models import NotificationType
from services.notifications_service.services.notify import create_notification
from services.promotions_service.models import TrackingEvent
from services.promotions_service.services.lifecycle import record_event_for_creator
from services.users_service.services.profiles import find_user_by_phone
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SLOT_MINUTES = 15
DAY_START = time(9, 0)
DAY_END = time(17, 0)


@dataclass
class InspectionContext:
    inspection: Inspection
    property: Property
    lead: Optional[Lead]


def format_slot(slot_time: datetime) -> str:
    """Human form of a slot in local time, e.g. ``Tue 20 Oct 2026, 10:15 AM``."""
    return as_utc(slot_time).astimezone(local_tz()).strftime("%a %d %b %Y, %I:%M %p")


def day_slots(day: date) -> list[datetime]:
    """UTC start times of every 15-minute slot between 09:00 and 17:00 local."""
    slots = []
    current = datetime.combine(day, DAY_START)
    end = datetime.combine(day, DAY_END)
    while current < end:
        slots.append(local_to_utc(current))
        current += timedelta(minutes=SLOT_MINUTES)
    return slots


async def _slot_taken(
    db: AsyncSession,
    *,
    property_id: uuid.UUID,
    slot_time: datetime,
    exclude_id: Optional[uuid.UUID] = None,
) -> bool:
    query = select(Inspection.id).where(
        Inspection.property_id == property_id,
        Inspection.slot_time == slot_time,
        Inspection.status.in_(ACTIVE_INSPECTION_STATUSES),
    )
    if exclude_id is not None:
        query = query.where(Inspection.id != exclude_id)
    return (await db.execute(query.limit(1))).scalar_one_or_none() is not None


async def available_slots(
    db: AsyncSession, *, property_id: uuid.UUID, day: date
) -> list[tuple[datetime, bool]]:
    await get_property(db, property_id)
    slots = day_slots(day)
    result = await db.execute(
        select(Inspection.slot_time).where(
            Inspection.property_id == property_id,
            Inspection.status.in_(ACTIVE_INSPECTION_STATUSES),
            Inspection.slot_time >= slots[0],
            Inspection.slot_time <= slots[-1],
        )
    )
    taken = {as_utc(row) for row in result.scalars().all()}
    return [(slot, slot not in taken) for slot in slots]


async def load_context(db: AsyncSession, inspection_id: uuid.UUID) -> InspectionContext:
    inspection = await db.get(Inspection, inspection_id)
    if inspection is None:
        raise NotFoundError("Inspection")
    prop = await get_property(db, inspection.property_id)
    lead = await db.get(Lead, inspection.lead_id) if inspection.lead_id else None
    return InspectionContext(inspection=inspection, property=prop, lead=lead)


def is_buyer(ctx: InspectionContext, user: AuthUser) -> bool:
    """The booking's buyer, or the person whose email or phone is on the lead."""
    if ctx.inspection.buyer_id and ctx.inspection.buyer_id == user.user_id:
        return True
    lead = ctx.lead
    if lead is None:
        return False
    if user.email and lead.buyer_email and user.email.lower() == lead.buyer_email.lower():
        return True
    user_phone = normalize_phone(user.phone)
    return bool(user_phone) and user_phone == lead.buyer_phone


def is_owner(ctx: InspectionContext, user: AuthUser) -> bool:
    return user.account_role == "developer" and ctx.property.developer_id == user.user_id


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


async def book_inspection(
    db: AsyncSession,
    *,
    lead_id: uuid.UUID,
    property_id: uuid.UUID,
    slot_time: datetime,
    user: Optional[AuthUser] = None,
) -> Inspection:
    slot_time = as_utc(slot_time)
    lead = await db.get(Lead, lead_id)
    if lead is None:
        raise NotFoundError("Lead")
    if lead.property_id != property_id:
        raise ValidationError("Lead does not match property")
    if slot_time <= utc_now():
        raise ValidationError("Cannot book an inspection in the past")
    prop = await get_property(db, property_id)

    if await _slot_taken(db, property_id=property_id, slot_time=slot_time):
        raise ValidationError("Time slot is no longer available")

    buyer_id = None
    if user is not None and user.account_role in ("buyer", "creator"):
        buyer_id = user.user_id
    if buyer_id is None:
        matched = await find_user_by_phone(db, lead.buyer_phone)
        buyer_id = matched.id if matched else None

    inspection = Inspection(
        lead_id=lead.id,
        property_id=property_id,
        buyer_id=buyer_id,
        slot_time=slot_time,
        status=InspectionStatus.BOOKED,
    )
    db.add(inspection)
    lead.status = LeadStatus.INSPECTION_BOOKED
    try:
        if lead.creator_id:
            await record_event_for_creator(
                db,
                creator_id=lead.creator_id,
                property_id=property_id,
                event=TrackingEvent.INSPECTION,
            )
        await db.commit()
    except IntegrityError:
        # Lost a race for the same slot
        await db.rollback()
        raise ValidationError("Time slot is no longer available")
    await db.refresh(inspection)

    logger.info("Inspection %s booked for property %s at %s", inspection.id, prop.id, slot_time)
    await send_sms_safely(
        lead.buyer_phone,
        f"Your inspection for {prop.title} is scheduled for {format_slot(slot_time)}. "
        "Reply CANCEL to cancel.",
    )
    await create_notification(
        db,
        user_id=prop.developer_id,
        type=NotificationType.INSPECTION_BOOKED,
        title="New inspection booked",
        body=f"{lead.buyer_name} booked an inspection of {prop.title} for {format_slot(slot_time)}.",
        data={"inspection_id": str(inspection.id), "property_id": str(prop.id)},
    )
    return inspection


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def confirm_inspection(
    db: AsyncSession, *, inspection_id: uuid.UUID, user: AuthUser
) -> Inspection:
    ctx = await load_context(db, inspection_id)
    if not (user.is_admin or is_owner(ctx, user)):
        raise ForbiddenError()
    inspection = ctx.inspection
    if inspection.status != InspectionStatus.BOOKED:
        raise ValidationError(
            f"Only booked inspections can be confirmed. Current status: {inspection.status.value}"
        )
    inspection.status = InspectionStatus.CONFIRMED
    inspection.confirmed_at = utc_now()
    inspection.confirmed_by = user.user_id
    await db.commit()
    await db.refresh(inspection)

    await create_notification(
        db,
        user_id=inspection.buyer_id,
        type=NotificationType.INSPECTION_CONFIRMED,
        title="Inspection confirmed",
        body=f"Your inspection of {ctx.property.title} on {format_slot(inspection.slot_time)} is confirmed.",
        data={"inspection_id": str(inspection.id)},
    )
    return inspection


async def complete_inspection(
    db: AsyncSession,
    *,
    inspection_id: uuid.UUID,
    user: AuthUser,
    notes: Optional[str] = None,
) -> Inspection:
    ctx = await load_context(db, inspection_id)
    if not (user.is_admin or is_owner(ctx, user)):
        raise ForbiddenError()
    inspection = ctx.inspection
    if inspection.status not in ACTIVE_INSPECTION_STATUSES:
        raise ValidationError(
            "Only booked or confirmed inspections can be marked complete. "
            f"Current status: {inspection.status.value}"
        )
    now = utc_now()
    if now < as_utc(inspection.slot_time):
        raise ValidationError(
            "Cannot mark inspection complete before the scheduled date and time."
        )

    inspection.status = InspectionStatus.COMPLETED
    inspection.completed_at = now
    inspection.completion_notes = notes.strip() if notes and notes.strip() else None
    await db.commit()
    await db.refresh(inspection)

    await create_notification(
        db,
        user_id=inspection.buyer_id,
        type=NotificationType.INSPECTION_COMPLETED,
        title="Inspection completed",
        body=f"Thanks for inspecting {ctx.property.title}.",
        data={"inspection_id": str(inspection.id)},
    )
    return inspection


async def cancel_inspection(
    db: AsyncSession,
    *,
    inspection_id: uuid.UUID,
    user: AuthUser,
    reason: Optional[str] = None,
) -> Inspection:
    ctx = await load_context(db, inspection_id)
    buyer = is_buyer(ctx, user)
    owner = is_owner(ctx, user)
    if not (user.is_admin or buyer or owner):
        raise ForbiddenError()

    inspection = ctx.inspection
    if inspection.status == InspectionStatus.COMPLETED:
        raise ValidationError("Completed inspections cannot be cancelled")
    if inspection.status == InspectionStatus.CANCELLED:
        raise ValidationError("Inspection is already cancelled")
    if inspection.status == InspectionStatus.WITHDRAWN:
        raise ValidationError("Withdrawn inspections cannot be cancelled")

    inspection.status = InspectionStatus.CANCELLED
    inspection.cancelled_at = utc_now()
    inspection.cancelled_by = user.user_id
    inspection.cancellation_reason = reason
    await db.commit()
    await db.refresh(inspection)

    # Tell the other party
    notify_user = ctx.property.developer_id if buyer else inspection.buyer_id
    await create_notification(
        db,
        user_id=notify_user,
        type=NotificationType.INSPECTION_CANCELLED,
        title="Inspection cancelled",
        body=f"The inspection of {ctx.property.title} on {format_slot(inspection.slot_time)} was cancelled.",
        data={"inspection_id": str(inspection.id), "reason": reason},
    )
    return inspection


async def withdraw_inspection(
    db: AsyncSession,
    *,
    inspection_id: uuid.UUID,
    user: AuthUser,
    reason: Optional[str] = None,
) -> Inspection:
    """Buyer is no longer interested after the visit."""
    ctx = await load_context(db, inspection_id)
    if not (user.is_admin or is_buyer(ctx, user)):
        raise ForbiddenError()
    inspection = ctx.inspection
    if inspection.status != InspectionStatus.COMPLETED:
        raise ValidationError("Only completed inspections can be withdrawn")

    inspection.status = InspectionStatus.WITHDRAWN
    inspection.withdrawn_at = utc_now()
    inspection.withdrawal_reason = reason
    await db.commit()
    await db.refresh(inspection)
    return inspection


async def reschedule_inspection(
    db: AsyncSession,
    *,
    inspection_id: uuid.UUID,
    user: AuthUser,
    slot_time: datetime,
    reason: Optional[str] = None,
) -> Inspection:
    """
    Move a live booking to another slot.

    A buyer reschedule goes back to ``booked`` so the developer must confirm
    again; a developer or admin reschedule keeps the current status.
    """
    ctx = await load_context(db, inspection_id)
    buyer = is_buyer(ctx, user)
    owner = is_owner(ctx, user)
    if not (user.is_admin or buyer or owner):
        raise ForbiddenError()

    inspection = ctx.inspection
    if inspection.status in TERMINAL_INSPECTION_STATUSES:
        raise ValidationError("Cannot reschedule a cancelled or completed inspection")

    slot_time = as_utc(slot_time)
    if slot_time <= utc_now():
        raise ValidationError("Cannot reschedule an inspection into the past")
    if await _slot_taken(
        db,
        property_id=inspection.property_id,
        slot_time=slot_time,
        exclude_id=inspection.id,
    ):
        raise ValidationError("This time slot is already booked")

    previous = inspection.slot_time
    inspection.slot_time = slot_time
    if buyer and not (owner or user.is_admin):
        inspection.status = InspectionStatus.BOOKED
        inspection.confirmed_at = None
        inspection.confirmed_by = None
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("This time slot is already booked")
    await db.refresh(inspection)
    logger.info(
        "Inspection %s rescheduled from %s to %s by %s",
        inspection.id,
        as_utc(previous),
        slot_time,
        user.user_id,
    )

    notify_user = ctx.property.developer_id if buyer else inspection.buyer_id
    await create_notification(
        db,
        user_id=notify_user,
        type=NotificationType.INSPECTION_RESCHEDULED,
        title="Inspection rescheduled",
        body=f"The inspection of {ctx.property.title} moved to {format_slot(slot_time)}.",
        data={"inspection_id": str(inspection.id), "reason": reason},
    )
    return inspection


async def list_inspections(
    db: AsyncSession, *, user: AuthUser, status: Optional[InspectionStatus] = None
) -> list[Inspection]:
    """Admins see everything, developers their properties, everyone else their own bookings."""
    query = select(Inspection)
    if user.account_role == "developer":
        query = query.join(Property, Property.id == Inspection.property_id).where(
            Property.developer_id == user.user_id
        )
    elif not user.is_admin:
        clauses = [Inspection.buyer_id == user.user_id]
        phone = normalize_phone(user.phone)
        if phone:
            clauses.append(
                Inspection.lead_id.in_(select(Lead.id).where(Lead.buyer_phone == phone))
            )
        query = query.where(or_(*clauses))
    if status is not None:
        query = query.where(Inspection.status == status)
    result = await db.execute(query.order_by(Inspection.slot_time.desc()))
    return list(result.scalars().all())
