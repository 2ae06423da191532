"""Unit tests for atomic wallet balance movements.

Balance updates are issued as single UPDATE statements, so the in-session
objects are refreshed before asserting.
"""

import pytest
from fastapi import HTTPException
from services.wallet_service.models import WalletUserType
from services.wallet_service.services.wallet_ops import (
    credit_available,
    credit_locked,
    debit_available,
    generate_reference,
    get_or_create_wallet,
    move_available_to_locked,
    release_locked,
    unlock_to_available,
    wallet_user_type,
)
from tests.factories import WalletFactory, persist


@pytest.mark.unit
def test_generate_reference_format():
    first, second = generate_reference(), generate_reference()
    assert first.startswith("reach_")
    assert first != second


@pytest.mark.unit
def test_wallet_user_type_defaults_to_buyer():
    assert wallet_user_type("developer") == WalletUserType.DEVELOPER
    assert wallet_user_type("something-else") == WalletUserType.BUYER


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_or_create_wallet_is_idempotent(db_session):
    first = await get_or_create_wallet(
        db_session, user_id="creator-1", user_type=WalletUserType.CREATOR
    )
    second = await get_or_create_wallet(db_session, user_id="creator-1")

    assert first.id == second.id
    assert first.available_balance == 0
    assert first.locked_balance == 0
    assert first.user_type == WalletUserType.CREATOR


@pytest.mark.asyncio
@pytest.mark.unit
async def test_move_to_locked_and_back(db_session):
    wallet = await persist(db_session, WalletFactory.create(available_balance=1_000_000))

    await move_available_to_locked(db_session, wallet_id=wallet.id, amount=400_000)
    await db_session.commit()
    await db_session.refresh(wallet)
    assert (wallet.available_balance, wallet.locked_balance) == (600_000, 400_000)

    await unlock_to_available(db_session, wallet_id=wallet.id, amount=400_000)
    await db_session.commit()
    await db_session.refresh(wallet)
    assert (wallet.available_balance, wallet.locked_balance) == (1_000_000, 0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_debit_never_goes_negative(db_session):
    wallet = await persist(db_session, WalletFactory.create(available_balance=100_000))

    with pytest.raises(HTTPException) as exc:
        await debit_available(db_session, wallet_id=wallet.id, amount=100_001)
    assert exc.value.detail == "Insufficient wallet balance"

    with pytest.raises(HTTPException):
        await move_available_to_locked(db_session, wallet_id=wallet.id, amount=200_000)

    await db_session.rollback()
    await db_session.refresh(wallet)
    assert wallet.available_balance == 100_000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_credit_and_release(db_session):
    wallet = await persist(db_session, WalletFactory.create(locked_balance=50_000))

    await credit_available(db_session, wallet_id=wallet.id, amount=25_000)
    await credit_locked(db_session, wallet_id=wallet.id, amount=10_000)
    await db_session.commit()
    await db_session.refresh(wallet)
    assert (wallet.available_balance, wallet.locked_balance) == (25_000, 60_000)

    # Releasing more than is locked floors at zero
    await release_locked(db_session, wallet_id=wallet.id, amount=100_000)
    await db_session.commit()
    await db_session.refresh(wallet)
    assert wallet.locked_balance == 0
    assert wallet.available_balance == 25_000
