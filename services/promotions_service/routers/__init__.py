"""Promotions service routers."""

from services.promotions_service.routers.creator import router as creator_router
from services.promotions_service.routers.tracking import router as tracking_router

__all__ = ["creator_router", "tracking_router"]
