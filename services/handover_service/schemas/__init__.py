"""Handover Service schemas package.

IMPORTANT: Every schema class must be listed here.
"""

from services.handover_service.schemas.handover import (  # noqa: F401
    EscrowResponse,
    HandoverActionResponse,
    HandoverDocument,
    HandoverListResponse,
    HandoverResponse,
    SubmitDocumentsRequest,
)
from services.handover_service.schemas.payment import (  # noqa: F401
    PropertyPaymentRequest,
    PropertyPaymentResponse,
)

__all__ = [
    "EscrowResponse",
    "HandoverActionResponse",
    "HandoverDocument",
    "HandoverListResponse",
    "HandoverResponse",
    "SubmitDocumentsRequest",
    "PropertyPaymentRequest",
    "PropertyPaymentResponse",
]
