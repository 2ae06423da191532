"""Currency helpers for Reach.

Internal storage and API unit: kobo (smallest NGN unit, 100 kobo = ₦1).
Display unit: Naira, formatted via ``format_naira``.

Fee schedules
-------------
Deposit (Paystack collection):  1.5% capped at ₦2,000
Withdrawal (Paystack transfer): ₦50 + 0.5% capped at ₦550
"""

from __future__ import annotations

from typing import Literal, Optional

# ─── constants ───────────────────────────────────────────────────────────────

KOBO_PER_NAIRA: int = 100

DEPOSIT_FEE_RATE = 0.015
DEPOSIT_FEE_CAP: int = 2_000 * KOBO_PER_NAIRA

WITHDRAWAL_FEE_FLAT: int = 50 * KOBO_PER_NAIRA
WITHDRAWAL_FEE_RATE = 0.005
WITHDRAWAL_FEE_CAP: int = 550 * KOBO_PER_NAIRA

MIN_DEPOSIT: int = 100 * KOBO_PER_NAIRA
MAX_DEPOSIT: int = 10_000_000 * KOBO_PER_NAIRA
MIN_WITHDRAWAL: int = 1_000 * KOBO_PER_NAIRA
MAX_WITHDRAWAL: int = 5_000_000 * KOBO_PER_NAIRA

AmountKind = Literal["deposit", "withdrawal"]


# ─── conversion helpers ───────────────────────────────────────────────────────


def naira_to_kobo(naira: float) -> int:
    """Convert Naira to kobo (round half-up). ₦1 = 100 kobo."""
    return round(naira * KOBO_PER_NAIRA)


def kobo_to_naira(kobo: int) -> float:
    """Convert kobo to Naira. 100 kobo = ₦1."""
    return kobo / KOBO_PER_NAIRA


def format_naira(kobo: int) -> str:
    """``150000`` → ``"₦1,500.00"``."""
    return f"₦{kobo_to_naira(kobo):,.2f}"


# ─── fees ─────────────────────────────────────────────────────────────────────


def deposit_fee(amount: int) -> int:
    return min(round(amount * DEPOSIT_FEE_RATE), DEPOSIT_FEE_CAP)


def withdrawal_fee(amount: int) -> int:
    return min(WITHDRAWAL_FEE_FLAT + round(amount * WITHDRAWAL_FEE_RATE), WITHDRAWAL_FEE_CAP)


# ─── validation ───────────────────────────────────────────────────────────────


def validate_amount(amount: int, kind: AmountKind) -> Optional[str]:
    """Return a user-facing error message, or ``None`` when ``amount`` is acceptable."""
    if amount <= 0:
        return "Amount must be greater than zero"

    if kind == "deposit":
        low, high = MIN_DEPOSIT, MAX_DEPOSIT
    else:
        low, high = MIN_WITHDRAWAL, MAX_WITHDRAWAL

    if amount < low:
        return f"Minimum {kind} amount is {format_naira(low)}"
    if amount > high:
        return f"Maximum {kind} amount is {format_naira(high)}"
    return None
