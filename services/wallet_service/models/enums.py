"""Enums for the Wallet Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class WalletUserType(str, enum.Enum):
    DEVELOPER = "developer"
    CREATOR = "creator"
    BUYER = "buyer"
    ADMIN = "admin"


class TransactionType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class TransactionCategory(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PROPERTY_PURCHASE = "property_purchase"
    ESCROW_RELEASE = "escrow_release"
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESSFUL = "successful"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Statuses after which a transaction never changes again
TERMINAL_TRANSACTION_STATUSES = frozenset(
    {
        TransactionStatus.SUCCESSFUL,
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
    }
)


class PayoutStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class WalletActivityAction(str, enum.Enum):
    WALLET_SETUP = "wallet_setup"
    PIN_VERIFIED = "pin_verified"
    PIN_FAILED = "pin_failed"
    PIN_LOCKED = "pin_locked"
    BANK_ACCOUNT_ADDED = "bank_account_added"
    BANK_ACCOUNT_REMOVED = "bank_account_removed"
    WITHDRAWAL_INITIATED = "withdrawal_initiated"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    WITHDRAWAL_FAILED = "withdrawal_failed"
    DEPOSIT_INITIATED = "deposit_initiated"
    DEPOSIT_COMPLETED = "deposit_completed"
    PAYOUT_REQUESTED = "payout_requested"
    PAYOUT_REFUNDED = "payout_refunded"
    ESCROW_LOCKED = "escrow_locked"
    ESCROW_RELEASED = "escrow_released"


class AdminActionType(str, enum.Enum):
    WITHDRAWAL_APPROVED = "withdrawal_approved"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    PROPERTY_VERIFIED = "property_verified"
    PROPERTY_REJECTED = "property_rejected"
    HANDOVER_CREATED = "handover_created"
