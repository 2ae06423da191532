"""Wallet PIN: setup, verification and lockout."""

import math
from datetime import timedelta

import bcrypt
from libs.common.config import get_settings
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import AuthenticationError, ValidationError
from libs.common.logging import get_logger
from services.wallet_service.models import Wallet
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MAX_PIN_ATTEMPTS = 3
PIN_LOCK_MINUTES = 30


def is_valid_pin_format(pin: str) -> bool:
    return isinstance(pin, str) and len(pin) == 4 and pin.isdigit()


def hash_pin(pin: str) -> str:
    rounds = get_settings().PIN_HASH_ROUNDS
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode(
        "utf-8"
    )


def check_pin(pin: str, pin_hash: str) -> bool:
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.error("Stored PIN hash is not a valid bcrypt hash")
        return False


async def setup_pin(db: AsyncSession, *, wallet: Wallet, pin: str) -> bool:
    """Set the PIN once. Returns False if the wallet was already set up."""
    if wallet.is_setup:
        return False
    if not is_valid_pin_format(pin):
        raise ValidationError("PIN must be exactly 4 digits")

    wallet.pin_hash = hash_pin(pin)
    wallet.pin_attempts = 0
    wallet.pin_locked_until = None
    wallet.is_setup = True
    await db.commit()
    await db.refresh(wallet)
    return True


async def verify_pin(db: AsyncSession, *, wallet: Wallet, pin: str) -> None:
    """Check ``pin`` against the wallet, enforcing the 3-strike / 30-minute lockout.

    Failed attempts are committed before raising so they survive the request.
    """
    if not wallet.pin_hash:
        raise ValidationError("PIN not set. Please set up your wallet.")

    now = utc_now()
    lock_expired = False
    locked_until = as_utc(wallet.pin_locked_until)
    if locked_until:
        if locked_until > now:
            minutes_left = math.ceil((locked_until - now).total_seconds() / 60)
            raise AuthenticationError(
                f"PIN is locked. Try again in {minutes_left} minute(s)."
            )
        # Lock expired: start over
        wallet.pin_attempts = 0
        wallet.pin_locked_until = None
        lock_expired = True

    if not is_valid_pin_format(pin) or not check_pin(pin, wallet.pin_hash):
        attempts = (wallet.pin_attempts or 0) + 1
        wallet.pin_attempts = attempts
        if attempts >= MAX_PIN_ATTEMPTS:
            wallet.pin_locked_until = now + timedelta(minutes=PIN_LOCK_MINUTES)
            await db.commit()
            logger.warning("PIN locked for wallet %s after %d attempts", wallet.id, attempts)
            raise AuthenticationError(
                f"Too many failed attempts. PIN locked for {PIN_LOCK_MINUTES} minutes."
            )
        await db.commit()
        raise AuthenticationError(
            f"Invalid PIN. {MAX_PIN_ATTEMPTS - attempts} attempt(s) remaining."
        )

    if lock_expired or wallet.pin_attempts or wallet.pin_locked_until:
        wallet.pin_attempts = 0
        wallet.pin_locked_until = None
        await db.commit()
