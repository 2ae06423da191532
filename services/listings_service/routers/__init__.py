"""Listings service routers."""

from services.listings_service.routers.inspections import router as inspections_router
from services.listings_service.routers.leads import router as leads_router
from services.listings_service.routers.properties import (
    admin_router as admin_properties_router,
)
from services.listings_service.routers.properties import router as properties_router

__all__ = [
    "admin_properties_router",
    "inspections_router",
    "leads_router",
    "properties_router",
]
