"""Public tracking endpoints hit from shared property pages.

These never fail the page: unknown codes and inactive promotions simply come
back as ``tracked: false``.
"""

from fastapi import APIRouter, Depends
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.promotions_service.models import TrackingEvent
from services.promotions_service.schemas import (
    TrackingLinkResolution,
    TrackingRequest,
    TrackingResult,
)
from services.promotions_service.services import lifecycle
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/tracking", tags=["tracking"])


async def _track(db: AsyncSession, body: TrackingRequest, event: TrackingEvent) -> TrackingResult:
    try:
        link = await lifecycle.find_link(
            db, unique_code=body.creator_code, property_id=body.property_id
        )
        if link is None:
            return TrackingResult(tracked=False, reason="Unknown tracking code")
        tracked, reason = await lifecycle.record_event(db, link, event)
        await db.commit()
        return TrackingResult(tracked=tracked, reason=reason)
    except Exception:
        logger.exception("Failed to track %s for %s", event.value, body.creator_code)
        await db.rollback()
        return TrackingResult(tracked=False)


@router.post("/click", response_model=TrackingResult)
async def track_click(body: TrackingRequest, db: AsyncSession = Depends(get_async_db)):
    return await _track(db, body, TrackingEvent.CLICK)


@router.post("/impression", response_model=TrackingResult)
async def track_impression(body: TrackingRequest, db: AsyncSession = Depends(get_async_db)):
    return await _track(db, body, TrackingEvent.IMPRESSION)


@router.get("/{unique_code}", response_model=TrackingLinkResolution)
async def resolve_tracking_link(
    unique_code: str, db: AsyncSession = Depends(get_async_db)
):
    """Resolve a share code to its property for redirects."""
    link = await lifecycle.find_link(db, unique_code=unique_code)
    if link is None:
        raise NotFoundError("Tracking link")
    status = await lifecycle.check_and_expire(db, link)
    return TrackingLinkResolution(
        unique_code=link.unique_code,
        property_id=link.property_id,
        active=lifecycle.is_promotion_active(status, link.expires_at),
    )
