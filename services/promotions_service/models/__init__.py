"""Promotions Service models package.

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.promotions_service.models.enums import (  # noqa: F401
    PromotionStatus,
    TrackingEvent,
)
from services.promotions_service.models.tracking_link import TrackingLink  # noqa: F401

__all__ = [
    "PromotionStatus",
    "TrackingEvent",
    "TrackingLink",
]
