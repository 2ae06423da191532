"""Users service routers."""

from services.users_service.routers.me import router as users_router

__all__ = ["users_router"]
