"""Lead capture from public property pages."""

from typing import Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import ForbiddenError, ValidationError
from libs.common.logging import get_logger
from services.listings_service.models import Lead, ListingType, Property
from services.listings_service.schemas import LeadSubmit
from services.listings_service.services.properties import get_property
from services.notifications_service.models import NotificationType
from services.notifications_service.services.notify import create_notification
from services.promotions_service.models import TrackingEvent
from services.promotions_service.services.lifecycle import find_link, record_event
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def ensure_can_submit(user: Optional[AuthUser]) -> None:
    """Anonymous visitors, buyers and creators may submit leads."""
    if user is None:
        return
    if user.account_role == "admin":
        raise ForbiddenError("Admins cannot submit leads")
    if user.account_role == "developer":
        raise ForbiddenError("Developers cannot submit leads")


async def submit_lead(
    db: AsyncSession, *, data: LeadSubmit, user: Optional[AuthUser] = None
) -> Lead:
    ensure_can_submit(user)
    prop = await get_property(db, data.property_id)

    existing = await db.execute(
        select(Lead.id).where(
            Lead.property_id == prop.id, Lead.buyer_phone == data.buyer_phone
        )
    )
    if existing.scalar_one_or_none():
        raise ValidationError("Lead already exists for this phone number")

    creator_id = None
    source_link = None
    if data.tracking_code:
        link = await find_link(db, unique_code=data.tracking_code, property_id=prop.id)
        if link is not None:
            # Attribution holds even when the promotion no longer counts metrics
            creator_id = link.creator_id
            source_link = (
                f"{get_settings().FRONTEND_URL.rstrip('/')}/property/{prop.id}"
                f"?ref={data.tracking_code}"
            )
            await record_event(db, link, TrackingEvent.LEAD)

    lead = Lead(
        property_id=prop.id,
        creator_id=creator_id,
        buyer_id=user.user_id if user else None,
        buyer_name=data.buyer_name.strip(),
        buyer_phone=data.buyer_phone,
        buyer_email=data.buyer_email,
        source_link=source_link,
    )
    db.add(lead)
    if prop.listing_type == ListingType.LEAD_GENERATION:
        await db.execute(
            update(Property)
            .where(Property.id == prop.id)
            .values(leads_generated=Property.leads_generated + 1)
            .execution_options(synchronize_session=False)
        )
    await db.commit()
    await db.refresh(lead)
    logger.info("Lead %s captured for property %s (creator=%s)", lead.id, prop.id, creator_id)

    await create_notification(
        db,
        user_id=prop.developer_id,
        type=NotificationType.NEW_LEAD,
        title="New lead",
        body=f"{lead.buyer_name} is interested in {prop.title}.",
        data={"lead_id": str(lead.id), "property_id": str(prop.id)},
    )
    if creator_id:
        await create_notification(
            db,
            user_id=creator_id,
            type=NotificationType.NEW_LEAD,
            title="Your link generated a lead",
            body=f"A buyer enquired about {prop.title} through your link.",
            data={"lead_id": str(lead.id), "property_id": str(prop.id)},
        )
    return lead


async def list_developer_leads(db: AsyncSession, *, developer_id: str) -> list[Lead]:
    result = await db.execute(
        select(Lead)
        .join(Property, Property.id == Lead.property_id)
        .where(Property.developer_id == developer_id)
        .order_by(Lead.created_at.desc())
    )
    return list(result.scalars().all())
