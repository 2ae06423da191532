"""Unit tests for kobo/naira helpers and fee schedules."""

import pytest
from libs.common.currency import (
    deposit_fee,
    format_naira,
    kobo_to_naira,
    naira_to_kobo,
    validate_amount,
    withdrawal_fee,
)


@pytest.mark.unit
def test_naira_kobo_conversion():
    assert naira_to_kobo(1500) == 150_000
    assert naira_to_kobo(0.5) == 50
    assert kobo_to_naira(150_000) == 1500


@pytest.mark.unit
def test_format_naira():
    assert format_naira(150_000) == "₦1,500.00"
    assert format_naira(5) == "₦0.05"


@pytest.mark.unit
def test_deposit_fee_is_capped():
    # 1.5% of ₦10,000
    assert deposit_fee(1_000_000) == 15_000
    # 1.5% of ₦1,000,000 would be ₦15,000; capped at ₦2,000
    assert deposit_fee(100_000_000) == 200_000


@pytest.mark.unit
def test_withdrawal_fee_flat_plus_percentage_capped():
    # ₦50 + 0.5% of ₦10,000 = ₦100
    assert withdrawal_fee(1_000_000) == 10_000
    # ₦50 + 0.5% of ₦1,000,000 = ₦5,050 -> capped at ₦550
    assert withdrawal_fee(100_000_000) == 55_000


@pytest.mark.unit
@pytest.mark.parametrize(
    "amount,kind,expected",
    [
        (0, "deposit", "Amount must be greater than zero"),
        (5_000, "deposit", "Minimum deposit amount is ₦100.00"),
        (10_000, "deposit", None),
        (99_999, "withdrawal", "Minimum withdrawal amount is ₦1,000.00"),
        (500_000_001, "withdrawal", "Maximum withdrawal amount is ₦5,000,000.00"),
        (100_000, "withdrawal", None),
    ],
)
def test_validate_amount(amount, kind, expected):
    assert validate_amount(amount, kind) == expected
