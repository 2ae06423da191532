"""Enums for the Handover Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class EscrowStatus(str, enum.Enum):
    HELD = "held"
    RELEASED = "released"
    REFUNDED = "refunded"


class HandoverType(str, enum.Enum):
    SALE = "sale"
    LONG_TERM_RENTAL = "long_term_rental"
    SHORT_TERM_RENTAL = "short_term_rental"


class HandoverStatus(str, enum.Enum):
    PAYMENT_CONFIRMED = "payment_confirmed"
    PENDING_DEVELOPER_DOCS = "pending_developer_docs"
    DOCS_SUBMITTED = "docs_submitted"
    DOCS_VERIFIED = "docs_verified"
    REACH_SIGNED = "reach_signed"
    BUYER_SIGNED = "buyer_signed"
    KEYS_RELEASED = "keys_released"
    COMPLETED = "completed"
