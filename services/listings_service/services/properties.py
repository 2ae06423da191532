"""Property listing operations."""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.listings_service.models import (
    Property,
    PropertyStatus,
    VerificationStatus,
)
from services.listings_service.schemas import PropertyCreate
from services.notifications_service.models import NotificationType
from services.notifications_service.services.notify import create_notification
from services.wallet_service.models import AdminAction, AdminActionType
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property")
    return prop


async def create_property(
    db: AsyncSession, *, developer_id: str, data: PropertyCreate
) -> Property:
    prop = Property(
        developer_id=developer_id,
        title=data.title.strip(),
        description=data.description,
        location=data.location,
        price=data.price,
        listing_type=data.listing_type,
        status=PropertyStatus.ACTIVE if data.publish else PropertyStatus.DRAFT,
    )
    db.add(prop)
    await db.commit()
    await db.refresh(prop)
    logger.info("Developer %s listed property %s", developer_id, prop.id)
    return prop


async def review_property(
    db: AsyncSession,
    *,
    property_id: uuid.UUID,
    admin: AuthUser,
    approve: bool,
    notes: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Property:
    """Verify or reject a listing and record the admin action."""
    prop = await get_property(db, property_id)
    if approve:
        prop.verification_status = VerificationStatus.VERIFIED
        prop.verified_by = admin.user_id
        prop.verified_at = utc_now()
        prop.rejection_reason = None
        action = AdminActionType.PROPERTY_VERIFIED
    else:
        if not notes or not notes.strip():
            raise ValidationError("Rejection reason is required")
        prop.verification_status = VerificationStatus.REJECTED
        prop.rejection_reason = notes.strip()
        action = AdminActionType.PROPERTY_REJECTED

    db.add(
        AdminAction(
            admin_id=admin.user_id,
            action=action,
            entity="property",
            entity_id=str(prop.id),
            details={"notes": notes or ""},
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    await db.commit()
    await db.refresh(prop)

    await create_notification(
        db,
        user_id=prop.developer_id,
        type=NotificationType.PROPERTY_VERIFIED,
        title="Property verified" if approve else "Property rejected",
        body=(
            f"{prop.title} has been verified and can now be promoted."
            if approve
            else f"{prop.title} was not approved: {prop.rejection_reason}"
        ),
        data={"property_id": str(prop.id)},
    )
    return prop
