"""Users Service models package."""

from services.users_service.models.enums import UserRole  # noqa: F401
from services.users_service.models.user import User  # noqa: F401

__all__ = ["User", "UserRole"]
