"""Listings Service models package.

IMPORTANT: Every model class AND enum must be listed here.
When adding a new model, add both its import and its __all__ entry.
"""

from services.listings_service.models.enums import (  # noqa: F401
    ACTIVE_INSPECTION_STATUSES,
    TERMINAL_INSPECTION_STATUSES,
    InspectionStatus,
    LeadStatus,
    ListingType,
    PropertyStatus,
    VerificationStatus,
)
from services.listings_service.models.inspection import Inspection  # noqa: F401
from services.listings_service.models.lead import Lead  # noqa: F401
from services.listings_service.models.property import Property  # noqa: F401

__all__ = [
    # Enums
    "ACTIVE_INSPECTION_STATUSES",
    "TERMINAL_INSPECTION_STATUSES",
    "InspectionStatus",
    "LeadStatus",
    "ListingType",
    "PropertyStatus",
    "VerificationStatus",
    # Models
    "Property",
    "Lead",
    "Inspection",
]
