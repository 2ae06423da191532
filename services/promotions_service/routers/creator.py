"""Creator promotion management endpoints."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from libs.auth.dependencies import require_roles
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import NotFoundError, ValidationError
from libs.db.session import get_async_db
from services.listings_service.models import Property, VerificationStatus
from services.promotions_service.models import TrackingLink
from services.promotions_service.schemas import (
    PromotionAnalyticsResponse,
    PromotionCreate,
    PromotionExtend,
    PromotionLinkResponse,
    PromotionResponse,
)
from services.promotions_service.services import analytics, lifecycle
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/creator/promotions", tags=["creator-promotions"])
require_creator = require_roles("creator")


def _share_link(code: str) -> str:
    return f"{get_settings().FRONTEND_URL.rstrip('/')}/p/{code}"


@router.post("", response_model=PromotionLinkResponse)
async def create_promotion(
    body: PromotionCreate,
    response: Response,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    """Generate (or return the existing) tracking link for a verified property."""
    prop = await db.get(Property, body.property_id)
    if prop is None:
        raise NotFoundError("Property")
    if prop.verification_status != VerificationStatus.VERIFIED:
        raise ValidationError("Property must be verified before promotion")

    existing = (
        await db.execute(
            select(TrackingLink).where(
                TrackingLink.creator_id == creator.user_id,
                TrackingLink.property_id == prop.id,
            )
        )
    ).scalar_one_or_none()
    if existing:
        await lifecycle.check_and_expire(db, existing)
        return PromotionLinkResponse(
            message="Tracking link already exists",
            link=_share_link(existing.unique_code),
            tracking_link=PromotionResponse.model_validate(existing),
        )

    if body.expires_at and as_utc(body.expires_at) <= utc_now():
        raise ValidationError("Expiration date must be in the future")

    link = TrackingLink(
        creator_id=creator.user_id,
        property_id=prop.id,
        unique_code=lifecycle.generate_unique_code(creator.user_id, prop.id),
        expires_at=as_utc(body.expires_at),
    )
    db.add(link)
    await db.commit()
    await db.refresh(link)
    response.status_code = status.HTTP_201_CREATED
    return PromotionLinkResponse(
        message="Tracking link generated successfully",
        link=_share_link(link.unique_code),
        tracking_link=PromotionResponse.model_validate(link),
    )


@router.get("", response_model=list[PromotionResponse])
async def list_promotions(
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(TrackingLink)
        .where(TrackingLink.creator_id == creator.user_id)
        .order_by(desc(TrackingLink.created_at))
    )
    links = list(result.scalars().all())
    for link in links:
        await lifecycle.check_and_expire(db, link)
    return links


@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: uuid.UUID,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    await lifecycle.check_and_expire(db, link)
    return link


@router.get("/{promotion_id}/analytics", response_model=PromotionAnalyticsResponse)
async def get_promotion_analytics(
    promotion_id: uuid.UUID,
    period: Literal["daily", "weekly", "monthly"] = Query("daily"),
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    """Current-window stats against the previous window, plus chart buckets."""
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    return await analytics.promotion_analytics(db, link, period=period)


@router.post("/{promotion_id}/pause", response_model=PromotionResponse)
async def pause_promotion(
    promotion_id: uuid.UUID,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    return await lifecycle.pause(db, link)


@router.post("/{promotion_id}/resume", response_model=PromotionResponse)
async def resume_promotion(
    promotion_id: uuid.UUID,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    return await lifecycle.resume(db, link)


@router.post("/{promotion_id}/stop", response_model=PromotionResponse)
async def stop_promotion(
    promotion_id: uuid.UUID,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    """Stop permanently. This cannot be undone."""
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    return await lifecycle.stop(db, link)


@router.patch("/{promotion_id}", response_model=PromotionResponse)
async def extend_promotion(
    promotion_id: uuid.UUID,
    body: PromotionExtend,
    creator: AuthUser = Depends(require_creator),
    db: AsyncSession = Depends(get_async_db),
):
    link = await lifecycle.get_creator_link(
        db, link_id=promotion_id, creator_id=creator.user_id
    )
    return await lifecycle.extend(db, link, body.expires_at)
