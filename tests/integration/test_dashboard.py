"""Integration tests for the admin and developer dashboards."""

from datetime import datetime, timedelta, timezone

import pytest
from services.dashboard_service.services.stats import day_bounds
from services.handover_service.models import EscrowStatus, EscrowTransaction
from services.listings_service.models import PropertyStatus, VerificationStatus
from services.users_service.models import UserRole
from services.wallet_service.models import PayoutStatus
from tests.conftest import auth_headers, make_user
from tests.factories import (
    InspectionFactory,
    LeadFactory,
    PayoutFactory,
    PropertyFactory,
    PurchaseTransactionFactory,
    UserFactory,
    persist,
)


def _escrow(prop, txn, **overrides):
    defaults = {
        "transaction_id": txn.id,
        "property_id": prop.id,
        "buyer_id": txn.user_id,
        "developer_id": prop.developer_id,
        "amount": prop.price,
    }
    defaults.update(overrides)
    return EscrowTransaction(**defaults)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_dashboard_stats(client, db_session):
    await persist(
        db_session,
        UserFactory.create(role=UserRole.DEVELOPER),
        UserFactory.create(role=UserRole.CREATOR),
        UserFactory.create(role=UserRole.CREATOR),
        UserFactory.create(role=UserRole.BUYER),
    )
    listed = PropertyFactory.create(price=10_000_000)
    sold = PropertyFactory.create(price=20_000_000, status=PropertyStatus.SOLD)
    await persist(
        db_session,
        listed,
        sold,
        PropertyFactory.create(verification_status=VerificationStatus.PENDING),
        PropertyFactory.create(verification_status=VerificationStatus.REJECTED),
    )

    held_txn = PurchaseTransactionFactory.create(listed, "buyer-1")
    released_txn = PurchaseTransactionFactory.create(sold, "buyer-2")
    await persist(db_session, held_txn, released_txn)
    now = datetime.now(timezone.utc)
    await persist(
        db_session,
        _escrow(listed, held_txn),
        _escrow(sold, released_txn, status=EscrowStatus.RELEASED, released_at=now),
        PayoutFactory.create(amount=400_000),
        PayoutFactory.create(amount=100_000, status=PayoutStatus.PROCESSING),
        PayoutFactory.create(amount=250_000, status=PayoutStatus.COMPLETED),
        PayoutFactory.create(amount=999_000, status=PayoutStatus.CANCELLED),
    )

    today, _ = day_bounds()
    await persist(
        db_session,
        LeadFactory.create(property_id=listed.id),
        LeadFactory.create(property_id=listed.id, created_at=today - timedelta(hours=1)),
        InspectionFactory.create(
            property_id=listed.id, slot_time=today + timedelta(hours=10)
        ),
        InspectionFactory.create(
            property_id=listed.id, slot_time=today + timedelta(days=2, hours=10)
        ),
    )

    response = await client.get(
        "/api/admin/dashboard/stats", headers=auth_headers(make_user("admin"))
    )

    assert response.status_code == 200
    assert response.json() == {
        "users": {"total": 4, "developers": 1, "creators": 2, "buyers": 1},
        "properties": {
            "total": 4,
            "verified": 2,
            "pending_verification": 1,
            "rejected": 1,
            "sold": 1,
        },
        "financial": {
            "escrow_held": 10_000_000,
            "pending_payouts": 500_000,
            "completed_payouts": 250_000,
        },
        "activity": {"leads_today": 1, "inspections_today": 1, "sales_this_month": 1},
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_dashboard_is_admin_only(client):
    response = await client.get(
        "/api/admin/dashboard/stats", headers=auth_headers(make_user("developer"))
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin privileges required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_developer_counts_cover_own_listings_only(client, db_session):
    developer = make_user("developer")
    mine = PropertyFactory.create(developer_id=developer.user_id)
    also_mine = PropertyFactory.create(developer_id=developer.user_id)
    theirs = PropertyFactory.create()
    await persist(db_session, mine, also_mine, theirs)
    await persist(
        db_session,
        LeadFactory.create(property_id=mine.id),
        LeadFactory.create(property_id=also_mine.id),
        LeadFactory.create(property_id=theirs.id),
        InspectionFactory.create(property_id=mine.id),
        InspectionFactory.create(property_id=theirs.id),
    )

    response = await client.get(
        "/api/dashboard/developer/counts", headers=auth_headers(developer)
    )

    assert response.status_code == 200
    assert response.json() == {
        "properties_count": 2,
        "leads_count": 2,
        "inspections_count": 1,
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_developer_counts_refuse_buyers(client):
    response = await client.get(
        "/api/dashboard/developer/counts", headers=auth_headers(make_user("buyer"))
    )
    assert response.status_code == 403
