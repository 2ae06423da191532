"""Integration tests for transaction verification and Paystack webhooks."""

import pytest
from services.wallet_service.models import (
    Payout,
    PayoutStatus,
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    Wallet,
)
from tests.conftest import auth_headers, make_user, reload, sign_webhook
from tests.factories import PayoutFactory, TransactionFactory, WalletFactory, persist


async def _pending_deposit(db, user_id, amount=1_000_000, fee=15_000):
    wallet = await persist(db, WalletFactory.create(user_id=user_id))
    txn = await persist(
        db,
        TransactionFactory.create(
            user_id=user_id,
            wallet_id=wallet.id,
            amount=amount,
            fee=fee,
            net_amount=amount - fee,
        ),
    )
    return wallet, txn


async def _in_flight_withdrawal(db, user_id, amount=1_000_000):
    wallet = await persist(
        db,
        WalletFactory.create(user_id=user_id, available_balance=0, locked_balance=amount),
    )
    txn = await persist(
        db,
        TransactionFactory.create(
            user_id=user_id,
            wallet_id=wallet.id,
            type=TransactionType.DEBIT,
            category=TransactionCategory.WITHDRAWAL,
            amount=amount,
            fee=10_000,
            net_amount=amount - 10_000,
            status=TransactionStatus.PROCESSING,
        ),
    )
    return wallet, txn


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_successful_transaction_is_not_reverified(client, db_session, paystack):
    user = make_user("developer")
    txn = await persist(
        db_session,
        TransactionFactory.create(user_id=user.user_id, status=TransactionStatus.SUCCESSFUL),
    )

    response = await client.get(
        f"/api/transactions/{txn.id}/verify", headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "successful"
    assert paystack.verify_calls == []
    stored = await reload(db_session, Transaction, txn.id)
    assert stored.updated_at == txn.updated_at


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_hides_other_users_transactions(client, db_session):
    txn = await persist(db_session, TransactionFactory.create(user_id="someone-else"))

    response = await client.get(
        f"/api/transactions/{txn.id}/verify", headers=auth_headers(make_user("buyer"))
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Transaction not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_pending_deposit_credits_wallet(client, db_session, paystack):
    user = make_user("developer")
    wallet, txn = await _pending_deposit(db_session, user.user_id)
    paystack.set_payment(txn.reference, 1_000_000)

    response = await client.get(
        f"/api/transactions/{txn.id}/verify", headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "successful"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 985_000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_marks_abandoned_payment_failed(client, db_session, paystack):
    user = make_user("developer")
    wallet, txn = await _pending_deposit(db_session, user.user_id)
    paystack.set_payment(txn.reference, 1_000_000, status="abandoned")

    response = await client.get(
        f"/api/transactions/{txn.id}/verify", headers=auth_headers(user)
    )

    assert response.json()["status"] == "failed"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_amount_mismatch_is_not_credited(client, db_session, paystack):
    user = make_user("developer")
    wallet, txn = await _pending_deposit(db_session, user.user_id)
    paystack.set_payment(txn.reference, 100_000)

    response = await client.get(
        f"/api/transactions/{txn.id}/verify", headers=auth_headers(user)
    )

    assert response.json()["status"] == "failed"
    assert response.json()["failure_reason"] == "Amount mismatch"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 0


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_rejects_bad_signature(client):
    body, headers = sign_webhook({"event": "charge.success", "data": {}})
    headers["x-paystack-signature"] = "0" * 128

    response = await client.post("/api/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid signature"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_rejects_missing_signature(client):
    response = await client.post(
        "/api/webhooks/paystack",
        content=b'{"event": "charge.success", "data": {}}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_charge_success_credits_exactly_once(client, db_session, paystack):
    user = make_user("developer")
    wallet, txn = await _pending_deposit(db_session, user.user_id)
    paystack.set_payment(txn.reference, 1_000_000)
    body, headers = sign_webhook(
        {"event": "charge.success", "data": {"reference": txn.reference, "amount": 1_000_000}}
    )

    for _ in range(2):
        response = await client.post("/api/webhooks/paystack", content=body, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"received": True}

    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 985_000
    txn = await reload(db_session, Transaction, txn.id)
    assert txn.status == TransactionStatus.SUCCESSFUL
    assert txn.webhook_received is True
    # The second delivery short-circuits before asking Paystack again
    assert paystack.verify_calls == [txn.reference]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_charge_success_is_confirmed_with_paystack(client, db_session, paystack):
    user = make_user("developer")
    wallet, txn = await _pending_deposit(db_session, user.user_id)
    # No payment recorded: Paystack reports the charge as still ongoing
    body, headers = sign_webhook(
        {"event": "charge.success", "data": {"reference": txn.reference}}
    )

    response = await client.post("/api/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 0
    txn = await reload(db_session, Transaction, txn.id)
    assert txn.status == TransactionStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_reference_is_acknowledged(client):
    body, headers = sign_webhook(
        {"event": "charge.success", "data": {"reference": "reach_unknown"}}
    )
    response = await client.post("/api/webhooks/paystack", content=body, headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_transfer_success_releases_locked_once(client, db_session):
    wallet, txn = await _in_flight_withdrawal(db_session, "creator-1")
    body, headers = sign_webhook(
        {"event": "transfer.success", "data": {"reference": txn.reference, "status": "success"}}
    )

    for _ in range(2):
        await client.post("/api/webhooks/paystack", content=body, headers=headers)

    txn = await reload(db_session, Transaction, txn.id)
    assert txn.status == TransactionStatus.SUCCESSFUL
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.locked_balance == 0
    assert wallet.available_balance == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_transfer_failed_refunds_available(client, db_session):
    wallet, txn = await _in_flight_withdrawal(db_session, "creator-1")
    body, headers = sign_webhook(
        {
            "event": "transfer.failed",
            "data": {"reference": txn.reference, "reason": "Account closed"},
        }
    )

    for _ in range(2):
        await client.post("/api/webhooks/paystack", content=body, headers=headers)

    txn = await reload(db_session, Transaction, txn.id)
    assert txn.status == TransactionStatus.FAILED
    assert txn.failure_reason == "Account closed"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 1_000_000
    assert wallet.locked_balance == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_transfer_failed_refunds_reviewed_payout(client, db_session):
    wallet = await persist(db_session, WalletFactory.create(user_id="creator-1"))
    payout = await persist(
        db_session,
        PayoutFactory.create(
            wallet_id=wallet.id, user_id="creator-1", status=PayoutStatus.PROCESSING
        ),
    )
    body, headers = sign_webhook(
        {"event": "transfer.failed", "data": {"reference": payout.reference}}
    )

    await client.post("/api/webhooks/paystack", content=body, headers=headers)

    payout = await reload(db_session, Payout, payout.id)
    assert payout.status == PayoutStatus.FAILED
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == payout.net_amount
