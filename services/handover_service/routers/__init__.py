"""Handover service routers."""

from services.handover_service.routers.admin_transactions import (
    router as admin_transactions_router,
)
from services.handover_service.routers.handovers import router as handovers_router
from services.handover_service.routers.payments import router as payments_router

__all__ = [
    "admin_transactions_router",
    "handovers_router",
    "payments_router",
]
