"""Users Service schemas package."""

from services.users_service.schemas.user import UserResponse, UserUpdate  # noqa: F401

__all__ = ["UserResponse", "UserUpdate"]
