"""Integration tests for admin review of payout requests."""

import pytest
from services.wallet_service.models import AdminAction, AdminActionType, PayoutStatus, Wallet
from sqlalchemy import select
from tests.conftest import auth_headers, make_user, reload
from tests.factories import BankAccountFactory, PayoutFactory, WalletFactory, persist


async def _pending_payout(db, amount=2_000_000, **account_overrides):
    wallet = await persist(db, WalletFactory.create(available_balance=1_000_000))
    account = await persist(
        db, BankAccountFactory.create(wallet_id=wallet.id, **account_overrides)
    )
    payout = await persist(
        db,
        PayoutFactory.create(
            wallet_id=wallet.id,
            user_id=wallet.user_id,
            bank_account_id=account.id,
            amount=amount,
        ),
    )
    return wallet, account, payout


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_admin_is_refused(client, db_session):
    _, _, payout = await _pending_payout(db_session)

    response = await client.post(
        f"/api/admin/withdrawals/{payout.id}/approve",
        headers=auth_headers(make_user("creator")),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin privileges required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_filters_by_status(client, db_session):
    _, _, pending = await _pending_payout(db_session)
    wallet = await persist(db_session, WalletFactory.create())
    await persist(
        db_session,
        PayoutFactory.create(wallet_id=wallet.id, status=PayoutStatus.COMPLETED),
    )
    headers = auth_headers(make_user("admin"))

    only_pending = await client.get("/api/admin/withdrawals?status=pending", headers=headers)
    everything = await client.get("/api/admin/withdrawals?status=all", headers=headers)
    bogus = await client.get("/api/admin/withdrawals?status=bogus", headers=headers)

    assert only_pending.status_code == 200
    assert [w["id"] for w in only_pending.json()["withdrawals"]] == [str(pending.id)]
    assert everything.json()["total"] == 2
    assert everything.json()["pages"] == 1
    assert bogus.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_approve_and_complete(client, db_session, paystack):
    _, account, payout = await _pending_payout(db_session)
    headers = auth_headers(make_user("admin"))

    approved = await client.post(
        f"/api/admin/withdrawals/{payout.id}/approve", headers=headers
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "processing"
    assert paystack.initiated_transfers[0]["recipient"] == account.recipient_code

    again = await client.post(f"/api/admin/withdrawals/{payout.id}/approve", headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Withdrawal is not pending"

    completed = await client.post(
        f"/api/admin/withdrawals/{payout.id}/complete", headers=headers
    )
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reject_refunds_and_audits(client, db_session):
    wallet, _, payout = await _pending_payout(db_session)
    admin = make_user("admin")

    missing = await client.post(
        f"/api/admin/withdrawals/{payout.id}/reject",
        json={},
        headers=auth_headers(admin),
    )
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Rejection reason is required"

    response = await client.post(
        f"/api/admin/withdrawals/{payout.id}/reject",
        json={"reason": "Suspicious activity"},
        headers={**auth_headers(admin), "X-Forwarded-For": "41.58.1.2, 10.0.0.1"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 1_000_000 + payout.net_amount

    action = (await db_session.execute(select(AdminAction))).scalar_one()
    assert action.action == AdminActionType.WITHDRAWAL_REJECTED
    assert action.admin_id == admin.user_id
    assert action.ip_address == "41.58.1.2"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_payout_is_404(client):
    response = await client.post(
        "/api/admin/withdrawals/00000000-0000-0000-0000-000000000000/complete",
        headers=auth_headers(make_user("admin")),
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Withdrawal not found"
