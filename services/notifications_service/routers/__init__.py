"""Notifications service routers."""

from services.notifications_service.routers.notifications import (
    router as notifications_router,
)

__all__ = ["notifications_router"]
