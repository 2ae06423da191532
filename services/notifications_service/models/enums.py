"""Enums for the Notifications Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class NotificationType(str, enum.Enum):
    NEW_LEAD = "new_lead"
    INSPECTION_BOOKED = "inspection_booked"
    INSPECTION_CONFIRMED = "inspection_confirmed"
    INSPECTION_COMPLETED = "inspection_completed"
    INSPECTION_CANCELLED = "inspection_cancelled"
    INSPECTION_RESCHEDULED = "inspection_rescheduled"
    PAYMENT_RECEIVED = "payment_received"
    HANDOVER_UPDATE = "handover_update"
    WITHDRAWAL_UPDATE = "withdrawal_update"
    PROPERTY_VERIFIED = "property_verified"
    SYSTEM = "system"
