"""Unit tests for promotion state transitions and expiry."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from libs.common.datetime_utils import utc_now
from services.promotions_service.models import (
    PromotionStatus,
    TrackingEvent,
    TrackingLink,
)
from services.promotions_service.services import lifecycle
from tests.conftest import reload
from tests.factories import PropertyFactory, TrackingLinkFactory, persist


async def _link(db, **overrides):
    prop = await persist(db, PropertyFactory.create())
    return await persist(db, TrackingLinkFactory.create(property_id=prop.id, **overrides))


@pytest.mark.unit
def test_unique_code_is_16_hex_chars():
    code = lifecycle.generate_unique_code("creator-1", "property-1")
    assert len(code) == 16
    int(code, 16)
    assert code != lifecycle.generate_unique_code("creator-1", "property-1")


@pytest.mark.unit
def test_active_with_past_expiry_is_inactive():
    past = utc_now() - timedelta(minutes=1)
    future = utc_now() + timedelta(days=1)

    assert lifecycle.is_promotion_active(PromotionStatus.ACTIVE, future)
    assert lifecycle.is_promotion_active(PromotionStatus.ACTIVE, None)
    assert not lifecycle.is_promotion_active(PromotionStatus.ACTIVE, past)
    assert not lifecycle.is_promotion_active(PromotionStatus.PAUSED, future)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_batch_expire_runs_once(db_session):
    expired = await _link(db_session, expires_at=utc_now() - timedelta(hours=1))
    live = await _link(db_session, expires_at=utc_now() + timedelta(days=1))
    paused = await _link(
        db_session,
        status=PromotionStatus.PAUSED,
        expires_at=utc_now() - timedelta(hours=1),
    )

    assert await lifecycle.batch_expire_promotions(db_session) == 1
    assert await lifecycle.batch_expire_promotions(db_session) == 0

    expired = await reload(db_session, TrackingLink, expired.id)
    assert expired.status == PromotionStatus.EXPIRED
    assert expired.expired_at is not None
    assert (await reload(db_session, TrackingLink, live.id)).status == PromotionStatus.ACTIVE
    assert (await reload(db_session, TrackingLink, paused.id)).status == PromotionStatus.PAUSED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pause_resume_stop(db_session):
    link = await _link(db_session)

    await lifecycle.pause(db_session, link)
    assert link.status == PromotionStatus.PAUSED
    assert link.paused_at is not None

    with pytest.raises(HTTPException) as exc:
        await lifecycle.pause(db_session, link)
    assert "Only active promotions can be paused" in exc.value.detail

    await lifecycle.resume(db_session, link)
    assert link.status == PromotionStatus.ACTIVE
    assert link.paused_at is None

    await lifecycle.stop(db_session, link)
    assert link.status == PromotionStatus.STOPPED
    with pytest.raises(HTTPException) as exc:
        await lifecycle.stop(db_session, link)
    assert exc.value.detail == "Promotion is already stopped. This action is irreversible."


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expired_link_needs_extension_before_resume(db_session):
    link = await _link(
        db_session,
        status=PromotionStatus.EXPIRED,
        expires_at=utc_now() - timedelta(days=1),
    )

    with pytest.raises(HTTPException) as exc:
        await lifecycle.resume(db_session, link)
    assert exc.value.detail == (
        "Cannot resume expired promotion. Please extend the expiration date first."
    )

    with pytest.raises(HTTPException) as exc:
        await lifecycle.extend(db_session, link, utc_now() - timedelta(minutes=1))
    assert exc.value.detail == "Expiration date must be in the future"

    await lifecycle.extend(db_session, link, utc_now() + timedelta(days=7))
    await lifecycle.resume(db_session, link)
    assert link.status == PromotionStatus.ACTIVE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_record_event_only_counts_active_links(db_session):
    active = await _link(db_session)
    tracked, reason = await lifecycle.record_event(db_session, active, TrackingEvent.CLICK)
    await db_session.commit()
    assert (tracked, reason) == (True, None)
    assert (await reload(db_session, TrackingLink, active.id)).clicks == 1

    lapsed = await _link(db_session, expires_at=utc_now() - timedelta(minutes=5))
    tracked, reason = await lifecycle.record_event(db_session, lapsed, TrackingEvent.CLICK)
    assert (tracked, reason) == (False, "Promotion is expired")
    lapsed = await reload(db_session, TrackingLink, lapsed.id)
    assert lapsed.status == PromotionStatus.EXPIRED
    assert lapsed.clicks == 0

    paused = await _link(db_session, status=PromotionStatus.PAUSED)
    tracked, reason = await lifecycle.record_event(db_session, paused, TrackingEvent.LEAD)
    assert (tracked, reason) == (False, "Promotion is paused")
