"""Enums for the Promotions Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class PromotionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"
    EXPIRED = "expired"


class TrackingEvent(str, enum.Enum):
    IMPRESSION = "impressions"
    CLICK = "clicks"
    LEAD = "leads"
    INSPECTION = "inspections"
    CONVERSION = "conversions"
