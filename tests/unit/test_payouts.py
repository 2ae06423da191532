"""Unit tests for the admin-reviewed payout lifecycle."""

import pytest
from fastapi import HTTPException
from services.wallet_service.models import AdminAction, Payout, PayoutStatus, Wallet
from services.wallet_service.services.payouts import (
    AuditContext,
    approve_payout,
    complete_payout,
    reject_payout,
    request_payout,
)
from sqlalchemy import select
from tests.conftest import FakePaystack, make_user, reload
from tests.factories import BankAccountFactory, WalletFactory, persist


async def _funded_wallet(db, balance=5_000_000, **account_overrides):
    wallet = await persist(db, WalletFactory.create_setup(available_balance=balance))
    account = await persist(db, BankAccountFactory.create(wallet_id=wallet.id, **account_overrides))
    return wallet, account


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_payout_debits_immediately(db_session):
    wallet, account = await _funded_wallet(db_session)

    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )

    assert payout.status == PayoutStatus.PENDING
    assert payout.fee == 0
    assert payout.net_amount == 2_000_000
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 3_000_000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_payout_insufficient_balance_leaves_nothing_behind(db_session):
    wallet, account = await _funded_wallet(db_session, balance=150_000)

    with pytest.raises(HTTPException) as exc:
        await request_payout(
            db_session, wallet=wallet, amount=500_000, bank_account_id=account.id, pin="1234"
        )
    assert exc.value.detail == "Insufficient wallet balance"

    payouts = (await db_session.execute(select(Payout))).scalars().all()
    assert payouts == []
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 150_000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reject_refunds_exactly_net_amount(db_session):
    wallet, account = await _funded_wallet(db_session)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )

    ctx = AuditContext(admin=make_user("admin"), ip_address="10.0.0.1")
    rejected = await reject_payout(
        db_session, payout_id=payout.id, reason="  Account mismatch  ", ctx=ctx
    )

    assert rejected.status == PayoutStatus.CANCELLED
    assert rejected.failure_reason == "Account mismatch"
    assert rejected.processed_by == ctx.admin.user_id
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 5_000_000

    actions = (await db_session.execute(select(AdminAction))).scalars().all()
    assert len(actions) == 1
    assert actions[0].details["refunded"] == 2_000_000
    assert actions[0].ip_address == "10.0.0.1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reject_requires_reason_and_pending_status(db_session):
    wallet, account = await _funded_wallet(db_session)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )
    ctx = AuditContext(admin=make_user("admin"))

    with pytest.raises(HTTPException) as exc:
        await reject_payout(db_session, payout_id=payout.id, reason="   ", ctx=ctx)
    assert exc.value.detail == "Rejection reason is required"

    await reject_payout(db_session, payout_id=payout.id, reason="Duplicate", ctx=ctx)
    with pytest.raises(HTTPException) as exc:
        await reject_payout(db_session, payout_id=payout.id, reason="Again", ctx=ctx)
    assert exc.value.detail == "Withdrawal is not pending"

    # Refunded once only
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 5_000_000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approve_initiates_transfer_then_complete(db_session):
    wallet, account = await _funded_wallet(db_session)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )
    paystack = FakePaystack()
    ctx = AuditContext(admin=make_user("admin"))

    approved = await approve_payout(db_session, payout_id=payout.id, ctx=ctx, paystack=paystack)

    assert approved.status == PayoutStatus.PROCESSING
    assert approved.transfer_code is not None
    assert paystack.initiated_transfers == [
        {"recipient": account.recipient_code, "amount": 2_000_000, "reference": payout.reference}
    ]

    completed = await complete_payout(db_session, payout_id=payout.id, ctx=ctx)
    assert completed.status == PayoutStatus.COMPLETED
    assert completed.completed_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_approve_without_recipient_is_manual(db_session):
    wallet, account = await _funded_wallet(db_session, recipient_code=None)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )
    paystack = FakePaystack()

    approved = await approve_payout(
        db_session,
        payout_id=payout.id,
        ctx=AuditContext(admin=make_user("admin")),
        paystack=paystack,
    )

    assert approved.status == PayoutStatus.PROCESSING
    assert paystack.initiated_transfers == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_transfer_keeps_payout_processing(db_session):
    wallet, account = await _funded_wallet(db_session)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )
    paystack = FakePaystack()
    paystack.fail_transfer = True

    approved = await approve_payout(
        db_session,
        payout_id=payout.id,
        ctx=AuditContext(admin=make_user("admin")),
        paystack=paystack,
    )

    assert approved.status == PayoutStatus.PROCESSING
    assert approved.failure_reason.startswith("Transfer not initiated")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_requires_processing(db_session):
    wallet, account = await _funded_wallet(db_session)
    payout = await request_payout(
        db_session, wallet=wallet, amount=2_000_000, bank_account_id=account.id, pin="1234"
    )

    with pytest.raises(HTTPException) as exc:
        await complete_payout(
            db_session, payout_id=payout.id, ctx=AuditContext(admin=make_user("admin"))
        )
    assert exc.value.detail == "Only processing withdrawals can be completed"
