"""Unit tests for inspection slot generation and booking rules."""

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from libs.common.datetime_utils import as_utc
from services.listings_service.models import Inspection, InspectionStatus, LeadStatus
from services.listings_service.services import inspections as inspections_service
from services.listings_service.services.inspections import (
    available_slots,
    book_inspection,
    complete_inspection,
    day_slots,
)
from sqlalchemy import func, select
from tests.conftest import make_user
from tests.factories import (
    InspectionFactory,
    LeadFactory,
    PropertyFactory,
    TrackingLinkFactory,
    persist,
)


@pytest.mark.unit
def test_day_slots_cover_business_hours_in_lagos_time():
    slots = day_slots(date(2026, 10, 20))

    assert len(slots) == 32
    # Lagos is UTC+1 all year
    assert slots[0] == datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc)
    assert slots[-1] == datetime(2026, 10, 20, 15, 45, tzinfo=timezone.utc)
    assert all(b - a == timedelta(minutes=15) for a, b in zip(slots, slots[1:]))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_available_slots_hide_live_bookings_only(db_session):
    prop = await persist(db_session, PropertyFactory.create())
    day = date.today() + timedelta(days=7)
    slots = day_slots(day)
    await persist(
        db_session,
        InspectionFactory.create(property_id=prop.id, slot_time=slots[0]),
        InspectionFactory.create(
            property_id=prop.id, slot_time=slots[1], status=InspectionStatus.CANCELLED
        ),
    )

    result = dict(await available_slots(db_session, property_id=prop.id, day=day))

    assert result[slots[0]] is False
    assert result[slots[1]] is True
    assert sum(1 for free in result.values() if not free) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_book_inspection_rejects_past_and_taken_slots(db_session):
    prop = await persist(db_session, PropertyFactory.create())
    lead = await persist(db_session, LeadFactory.create(property_id=prop.id))
    slot = day_slots(date.today() + timedelta(days=3))[4]

    with pytest.raises(HTTPException) as exc:
        await book_inspection(
            db_session,
            lead_id=lead.id,
            property_id=prop.id,
            slot_time=datetime.now(timezone.utc) - timedelta(hours=1),
        )
    assert exc.value.detail == "Cannot book an inspection in the past"

    inspection = await book_inspection(
        db_session, lead_id=lead.id, property_id=prop.id, slot_time=slot
    )
    assert inspection.status == InspectionStatus.BOOKED
    assert as_utc(inspection.slot_time) == slot
    await db_session.refresh(lead)
    assert lead.status == LeadStatus.INSPECTION_BOOKED

    other = await persist(db_session, LeadFactory.create(property_id=prop.id))
    with pytest.raises(HTTPException) as exc:
        await book_inspection(
            db_session, lead_id=other.id, property_id=prop.id, slot_time=slot
        )
    assert exc.value.detail == "Time slot is no longer available"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_lead_must_belong_to_property(db_session):
    prop = await persist(db_session, PropertyFactory.create())
    elsewhere = await persist(db_session, PropertyFactory.create())
    lead = await persist(db_session, LeadFactory.create(property_id=elsewhere.id))

    with pytest.raises(HTTPException) as exc:
        await book_inspection(
            db_session,
            lead_id=lead.id,
            property_id=prop.id,
            slot_time=day_slots(date.today() + timedelta(days=2))[0],
        )
    assert exc.value.detail == "Lead does not match property"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cannot_complete_before_slot_time(db_session):
    developer = make_user("developer")
    prop = await persist(db_session, PropertyFactory.create(developer_id=developer.user_id))
    inspection = await persist(db_session, InspectionFactory.create(property_id=prop.id))

    with pytest.raises(HTTPException) as exc:
        await complete_inspection(db_session, inspection_id=inspection.id, user=developer)
    assert exc.value.detail == (
        "Cannot mark inspection complete before the scheduled date and time."
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_after_slot_time(db_session):
    developer = make_user("developer")
    prop = await persist(db_session, PropertyFactory.create(developer_id=developer.user_id))
    inspection = await persist(
        db_session,
        InspectionFactory.create(
            property_id=prop.id,
            slot_time=datetime.now(timezone.utc) - timedelta(hours=2),
            status=InspectionStatus.CONFIRMED,
        ),
    )

    done = await complete_inspection(
        db_session, inspection_id=inspection.id, user=developer, notes="  Liked it  "
    )

    assert done.status == InspectionStatus.COMPLETED
    assert done.completion_notes == "Liked it"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_slot_race_with_lapsed_creator_link_is_reported_as_taken(
    db_session, monkeypatch
):
    prop = await persist(db_session, PropertyFactory.create())
    link = await persist(
        db_session,
        TrackingLinkFactory.create(
            property_id=prop.id,
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=10),
        ),
    )
    lead = await persist(
        db_session, LeadFactory.create(property_id=prop.id, creator_id=link.creator_id)
    )
    slot = day_slots(date.today() + timedelta(days=4))[6]
    await persist(db_session, InspectionFactory.create(property_id=prop.id, slot_time=slot))

    # Another booking for the slot lands between the availability check and the insert
    async def _looks_free(*args, **kwargs):
        return False

    monkeypatch.setattr(inspections_service, "_slot_taken", _looks_free)

    with pytest.raises(HTTPException) as exc:
        await book_inspection(
            db_session, lead_id=lead.id, property_id=prop.id, slot_time=slot
        )

    assert exc.value.status_code == 400
    assert exc.value.detail == "Time slot is no longer available"
    booked = await db_session.execute(
        select(func.count()).select_from(Inspection).where(Inspection.property_id == prop.id)
    )
    assert booked.scalar() == 1
