"""Money moves once even when two callers hold the same row.

Each test loads the row into two independent sessions before either acts, so
the second caller works from a stale in-memory status, the way a webhook and
a redirect verification (or two admins) interleave in production.
"""

import pytest
from fastapi import HTTPException
from libs.common.datetime_utils import utc_now
from services.handover_service.models import (
    EscrowStatus,
    EscrowTransaction,
    Handover,
    HandoverStatus,
)
from services.handover_service.services.purchase import complete_property_purchase
from services.handover_service.services.workflow import mark_complete
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    Wallet,
)
from services.wallet_service.paystack_client import VerifiedPayment
from services.wallet_service.services.deposits import apply_verified_deposit
from services.wallet_service.services.withdrawals import (
    fail_withdrawal,
    settle_withdrawal,
)
from sqlalchemy import func, select
from tests.conftest import make_user, reload
from tests.factories import (
    PropertyFactory,
    PurchaseTransactionFactory,
    TransactionFactory,
    WalletFactory,
    persist,
)


def _paid(reference: str, amount: int) -> VerifiedPayment:
    return VerifiedPayment(
        reference=reference,
        status="success",
        amount=amount,
        currency="NGN",
        gateway_response="Approved",
        raw={"reference": reference, "status": "success", "amount": amount},
    )


async def _withdrawal(db_session, amount: int = 1_000_000):
    wallet = await persist(db_session, WalletFactory.create(locked_balance=amount))
    txn = await persist(
        db_session,
        TransactionFactory.create(
            wallet_id=wallet.id,
            user_id=wallet.user_id,
            type=TransactionType.DEBIT,
            category=TransactionCategory.WITHDRAWAL,
            amount=amount,
            fee=10_000,
            net_amount=amount - 10_000,
            status=TransactionStatus.PROCESSING,
        ),
    )
    return wallet, txn


@pytest.mark.asyncio
@pytest.mark.unit
async def test_deposit_is_credited_once_across_sessions(db_session, session_factory):
    wallet = await persist(db_session, WalletFactory.create())
    txn = await persist(
        db_session,
        TransactionFactory.create(
            wallet_id=wallet.id,
            user_id=wallet.user_id,
            amount=100_000,
            fee=1_500,
            net_amount=98_500,
        ),
    )
    verified = _paid(txn.reference, 100_000)

    async with session_factory() as webhook, session_factory() as redirect:
        seen_by_webhook = await webhook.get(Transaction, txn.id)
        seen_by_redirect = await redirect.get(Transaction, txn.id)
        assert seen_by_redirect.status == TransactionStatus.PENDING

        credited = [
            await apply_verified_deposit(webhook, txn=seen_by_webhook, verified=verified),
            await apply_verified_deposit(redirect, txn=seen_by_redirect, verified=verified),
        ]

        assert credited == [True, False]
        assert seen_by_redirect.status == TransactionStatus.SUCCESSFUL

    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 98_500


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_transfer_refunds_once_across_sessions(db_session, session_factory):
    wallet, txn = await _withdrawal(db_session)
    payload = {"reference": txn.reference, "status": "failed", "reason": "Account closed"}

    async with session_factory() as first, session_factory() as second:
        a = await first.get(Transaction, txn.id)
        b = await second.get(Transaction, txn.id)

        refunded = [
            await fail_withdrawal(first, txn=a, payload=payload, event="transfer.failed"),
            await fail_withdrawal(second, txn=b, payload=payload, event="transfer.failed"),
        ]

        assert refunded == [True, False]
        assert b.status == TransactionStatus.FAILED

    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 1_000_000
    assert wallet.locked_balance == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_success_and_failure_events_cannot_both_apply(db_session, session_factory):
    wallet, txn = await _withdrawal(db_session)

    async with session_factory() as first, session_factory() as second:
        a = await first.get(Transaction, txn.id)
        b = await second.get(Transaction, txn.id)

        settled = await settle_withdrawal(
            first, txn=a, payload={"reference": txn.reference, "status": "success"}
        )
        refunded = await fail_withdrawal(
            second,
            txn=b,
            payload={"reference": txn.reference, "status": "reversed"},
            event="transfer.reversed",
        )

        assert (settled, refunded) == (True, False)

    txn = await reload(db_session, Transaction, txn.id)
    assert txn.status == TransactionStatus.SUCCESSFUL
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 0
    assert wallet.locked_balance == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_escrow_is_released_once_across_sessions(db_session, session_factory):
    prop = await persist(db_session, PropertyFactory.create())
    purchase = await persist(db_session, PurchaseTransactionFactory.create(prop, "buyer-1"))
    handover = await complete_property_purchase(db_session, transaction=purchase)

    now = utc_now()
    handover.status = HandoverStatus.KEYS_RELEASED
    handover.documents_verified_at = now
    handover.buyer_signed_at = now
    handover.keys_released_at = now
    handover.keys_delivered_at = now
    await db_session.commit()

    admin = make_user("admin")
    async with session_factory() as first, session_factory() as second:
        await first.get(Handover, handover.id)
        await second.get(Handover, handover.id)

        await mark_complete(first, handover_id=handover.id, admin=admin)
        with pytest.raises(HTTPException) as exc:
            await mark_complete(second, handover_id=handover.id, admin=admin)

    assert exc.value.detail == "Handover is already completed"

    escrow = await reload(db_session, EscrowTransaction, handover.escrow_id)
    assert escrow.status == EscrowStatus.RELEASED
    developer_wallet = (
        await db_session.execute(
            select(Wallet)
            .where(Wallet.user_id == prop.developer_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert developer_wallet.available_balance == prop.price
    assert developer_wallet.locked_balance == 0
    releases = await db_session.execute(
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.category == TransactionCategory.ESCROW_RELEASE)
    )
    assert releases.scalar() == 1
