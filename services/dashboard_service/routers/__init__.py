"""Dashboard service routers."""

from services.dashboard_service.routers.dashboard import router as dashboard_router

__all__ = ["dashboard_router"]
