"""Integration tests for the member wallet endpoints."""

import pytest
from services.wallet_service.models import (
    BankAccount,
    Transaction,
    TransactionStatus,
    Wallet,
)
from sqlalchemy import select
from tests.conftest import auth_headers, make_user, reload
from tests.factories import BankAccountFactory, WalletFactory, persist


async def _wallet_for(db, user, **overrides):
    return await persist(db, WalletFactory.create_setup(user_id=user.user_id, **overrides))


# ---------------------------------------------------------------------------
# Wallet and PIN
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_wallet_creates_once(client):
    user = make_user("creator")

    first = await client.get("/api/wallet", headers=auth_headers(user))
    second = await client.get("/api/wallet", headers=auth_headers(user))

    assert first.status_code == 200
    data = first.json()
    assert data["user_id"] == user.user_id
    assert data["user_type"] == "creator"
    assert data["available_balance"] == 0
    assert data["is_setup"] is False
    assert second.json()["id"] == data["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wallet_requires_auth(client):
    response = await client.get("/api/wallet")
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_setup_pin_once(client):
    user = make_user("developer")
    headers = auth_headers(user)

    response = await client.post(
        "/api/wallet/setup", json={"pin": "1234", "confirm_pin": "1234"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Wallet set up successfully"
    assert response.json()["wallet"]["is_setup"] is True

    again = await client.post(
        "/api/wallet/setup", json={"pin": "9999", "confirm_pin": "9999"}, headers=headers
    )
    assert again.json()["message"] == "Wallet is already set up"

    verify = await client.post("/api/wallet/verify-pin", json={"pin": "1234"}, headers=headers)
    assert verify.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_setup_rejects_bad_pins(client):
    headers = auth_headers(make_user("creator"))

    mismatch = await client.post(
        "/api/wallet/setup", json={"pin": "1234", "confirm_pin": "4321"}, headers=headers
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"] == "PINs do not match"

    short = await client.post(
        "/api/wallet/setup", json={"pin": "12a", "confirm_pin": "12a"}, headers=headers
    )
    assert short.status_code == 400
    assert short.json()["detail"] == "PIN must be exactly 4 digits"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_pin_locks_after_three_failures(client, db_session):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user)
    headers = auth_headers(user)

    details = []
    for _ in range(3):
        response = await client.post(
            "/api/wallet/verify-pin", json={"pin": "0000"}, headers=headers
        )
        assert response.status_code == 401
        details.append(response.json()["detail"])

    assert details == [
        "Invalid PIN. 2 attempt(s) remaining.",
        "Invalid PIN. 1 attempt(s) remaining.",
        "Too many failed attempts. PIN locked for 30 minutes.",
    ]

    # Even the right PIN is refused while locked
    locked = await client.post("/api/wallet/verify-pin", json={"pin": "1234"}, headers=headers)
    assert locked.status_code == 401
    assert locked.json()["detail"].startswith("PIN is locked. Try again in")

    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.pin_attempts == 3
    assert wallet.pin_locked_until is not None


# ---------------------------------------------------------------------------
# Bank accounts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bank_accounts_capped_at_three(client, db_session):
    user = make_user("creator")
    await _wallet_for(db_session, user)
    headers = auth_headers(user)

    created = []
    for number in ("0123456789", "1123456789", "2123456789"):
        response = await client.post(
            "/api/wallet/bank-accounts",
            json={"bank_code": "058", "account_number": number},
            headers=headers,
        )
        assert response.status_code == 201
        created.append(response.json())

    assert [a["is_primary"] for a in created] == [True, False, False]
    assert created[0]["account_name"] == "ADA OBI"
    assert created[0]["bank_name"] == "Test Bank"

    fourth = await client.post(
        "/api/wallet/bank-accounts",
        json={"bank_code": "058", "account_number": "3123456789"},
        headers=headers,
    )
    assert fourth.status_code == 400
    assert fourth.json()["detail"] == "Maximum of 3 bank accounts allowed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bank_account_rejected_when_unresolvable(client, db_session, paystack):
    user = make_user("creator")
    await _wallet_for(db_session, user)
    paystack.fail_resolve = True

    response = await client.post(
        "/api/wallet/bank-accounts",
        json={"bank_code": "058", "account_number": "0123456789"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Could not verify bank account"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_bank_account_rejected(client, db_session):
    user = make_user("creator")
    await _wallet_for(db_session, user)
    headers = auth_headers(user)
    body = {"bank_code": "058", "account_number": "0123456789"}

    await client.post("/api/wallet/bank-accounts", json=body, headers=headers)
    again = await client.post("/api/wallet/bank-accounts", json=body, headers=headers)

    assert again.status_code == 400
    assert again.json()["detail"] == "This bank account is already added"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deleting_primary_promotes_exactly_one(client, db_session):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user)
    headers = auth_headers(user)

    ids = []
    for number in ("0123456789", "1123456789", "2123456789"):
        response = await client.post(
            "/api/wallet/bank-accounts",
            json={"bank_code": "058", "account_number": number},
            headers=headers,
        )
        ids.append(response.json()["id"])

    deleted = await client.delete(f"/api/wallet/bank-accounts/{ids[0]}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["promoted_primary_id"] == ids[1]

    listing = await client.get("/api/wallet/bank-accounts", headers=headers)
    accounts = listing.json()
    assert len(accounts) == 2
    assert sum(1 for a in accounts if a["is_primary"]) == 1

    # Removing a non-primary account promotes nothing
    other = await client.delete(f"/api/wallet/bank-accounts/{ids[2]}", headers=headers)
    assert other.json()["promoted_primary_id"] is None

    last = await client.delete(f"/api/wallet/bank-accounts/{ids[1]}", headers=headers)
    assert last.json()["promoted_primary_id"] is None
    remaining = (
        await db_session.execute(select(BankAccount).where(BankAccount.wallet_id == wallet.id))
    ).scalars().all()
    assert remaining == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_set_primary_bank_account(client, db_session):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user)
    first = BankAccountFactory.create(wallet_id=wallet.id, is_primary=True)
    second = BankAccountFactory.create(wallet_id=wallet.id)
    await persist(db_session, first, second)

    response = await client.patch(
        f"/api/wallet/bank-accounts/{second.id}/primary", headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["is_primary"] is True
    first = await reload(db_session, BankAccount, first.id)
    assert first.is_primary is False


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_withdraw_reserves_funds_and_starts_transfer(client, db_session, paystack):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user, available_balance=5_000_000)
    account = await persist(db_session, BankAccountFactory.create(wallet_id=wallet.id))

    response = await client.post(
        "/api/wallet/withdraw",
        json={"amount": 1_000_000, "bank_account_id": str(account.id), "pin": "1234"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "processing"
    assert data["fee"] == 10_000
    assert data["net_amount"] == 990_000
    assert paystack.initiated_transfers[0]["amount"] == 990_000

    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 4_000_000
    assert wallet.locked_balance == 1_000_000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failed_transfer_restores_balance(client, db_session, paystack):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user, available_balance=5_000_000)
    account = await persist(db_session, BankAccountFactory.create(wallet_id=wallet.id))
    paystack.fail_transfer = True

    response = await client.post(
        "/api/wallet/withdraw",
        json={"amount": 1_000_000, "bank_account_id": str(account.id), "pin": "1234"},
        headers=auth_headers(user),
    )

    assert response.status_code == 502
    assert response.json()["detail"] == (
        "Failed to initiate transfer. Your balance has been restored."
    )
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 5_000_000
    assert wallet.locked_balance == 0
    txn = (
        await db_session.execute(select(Transaction).where(Transaction.user_id == user.user_id))
    ).scalar_one()
    assert txn.status == TransactionStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_withdraw_insufficient_balance(client, db_session, paystack):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user, available_balance=200_000)
    account = await persist(db_session, BankAccountFactory.create(wallet_id=wallet.id))

    response = await client.post(
        "/api/wallet/withdraw",
        json={"amount": 1_000_000, "bank_account_id": str(account.id), "pin": "1234"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient wallet balance"
    assert paystack.initiated_transfers == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_withdraw_requires_wallet_setup(client, db_session):
    user = make_user("creator")
    await persist(db_session, WalletFactory.create(user_id=user.user_id))

    response = await client.post(
        "/api/wallet/withdraw",
        json={
            "amount": 1_000_000,
            "bank_account_id": "00000000-0000-0000-0000-000000000000",
            "pin": "1234",
        },
        headers=auth_headers(user),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_payout_request_is_queued_for_review(client, db_session):
    user = make_user("creator")
    wallet = await _wallet_for(db_session, user, available_balance=5_000_000)
    account = await persist(db_session, BankAccountFactory.create(wallet_id=wallet.id))

    response = await client.post(
        "/api/wallet/payouts",
        json={"amount": 2_000_000, "bank_account_id": str(account.id), "pin": "1234"},
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    wallet = await reload(db_session, Wallet, wallet.id)
    assert wallet.available_balance == 3_000_000


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_funds_then_verify_credits_net_once(client, db_session, paystack):
    user = make_user("developer")
    headers = auth_headers(user)

    response = await client.post(
        "/api/wallet/add-funds", json={"amount": 1_000_000}, headers=headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["fee"] == 15_000
    assert data["net_amount"] == 985_000
    assert data["authorization_url"].startswith("https://checkout.paystack.test/")
    reference = data["reference"]

    paystack.set_payment(reference, 1_000_000)
    for _ in range(2):
        verified = await client.post(
            "/api/wallet/verify-transaction", json={"reference": reference}, headers=headers
        )
        assert verified.status_code == 200
        assert verified.json()["status"] == "successful"

    wallet = (
        await db_session.execute(select(Wallet).where(Wallet.user_id == user.user_id))
    ).scalar_one()
    assert wallet.available_balance == 985_000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_funds_rejects_second_pending_deposit(client):
    headers = auth_headers(make_user("developer"))

    await client.post("/api/wallet/add-funds", json={"amount": 1_000_000}, headers=headers)
    second = await client.post(
        "/api/wallet/add-funds", json={"amount": 1_000_000}, headers=headers
    )

    assert second.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_funds_is_for_developers(client):
    response = await client.post(
        "/api/wallet/add-funds",
        json={"amount": 1_000_000},
        headers=auth_headers(make_user("buyer")),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_funds_gateway_failure(client, paystack):
    paystack.fail_initialize = True

    response = await client.post(
        "/api/wallet/add-funds",
        json={"amount": 1_000_000},
        headers=auth_headers(make_user("developer")),
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not initialize payment. Please try again."
