"""Handover Service models package.

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.handover_service.models.enums import (  # noqa: F401
    EscrowStatus,
    HandoverStatus,
    HandoverType,
)
from services.handover_service.models.escrow import EscrowTransaction  # noqa: F401
from services.handover_service.models.handover import Handover  # noqa: F401

__all__ = [
    # Enums
    "EscrowStatus",
    "HandoverStatus",
    "HandoverType",
    # Models
    "EscrowTransaction",
    "Handover",
]
