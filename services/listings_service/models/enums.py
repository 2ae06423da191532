"""Enums for the Listings Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"
    SHORT_LET = "short_let"
    LEAD_GENERATION = "lead_generation"


class PropertyStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    OFF_MARKET = "off_market"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    INSPECTION_BOOKED = "inspection_booked"
    CONVERTED = "converted"
    LOST = "lost"


class InspectionStatus(str, enum.Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    WITHDRAWN = "withdrawn"


# Slot-holding statuses: a slot with one of these is taken
ACTIVE_INSPECTION_STATUSES = (InspectionStatus.BOOKED, InspectionStatus.CONFIRMED)

TERMINAL_INSPECTION_STATUSES = (
    InspectionStatus.COMPLETED,
    InspectionStatus.CANCELLED,
    InspectionStatus.WITHDRAWN,
)
