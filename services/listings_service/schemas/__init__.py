"""Listings Service schemas package.

IMPORTANT: Every schema class must be listed here.
"""

from services.listings_service.schemas.inspection import (  # noqa: F401
    AvailableSlotsResponse,
    InspectionBook,
    InspectionBookResponse,
    InspectionCancel,
    InspectionComplete,
    InspectionReschedule,
    InspectionResponse,
    InspectionWithdraw,
    Slot,
)
from services.listings_service.schemas.lead import (  # noqa: F401
    LeadResponse,
    LeadSubmit,
    LeadSubmitResponse,
)
from services.listings_service.schemas.property import (  # noqa: F401
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyReviewRequest,
)

__all__ = [
    # Properties
    "PropertyCreate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertyReviewRequest",
    # Leads
    "LeadSubmit",
    "LeadResponse",
    "LeadSubmitResponse",
    # Inspections
    "InspectionBook",
    "InspectionBookResponse",
    "InspectionComplete",
    "InspectionCancel",
    "InspectionWithdraw",
    "InspectionReschedule",
    "InspectionResponse",
    "Slot",
    "AvailableSlotsResponse",
]
