"""Dashboard Service schemas package."""

from services.dashboard_service.schemas.dashboard import (  # noqa: F401
    ActivityStats,
    AdminDashboardStats,
    DeveloperCounts,
    FinancialStats,
    PropertyStats,
    UserStats,
)

__all__ = [
    "AdminDashboardStats",
    "UserStats",
    "PropertyStats",
    "FinancialStats",
    "ActivityStats",
    "DeveloperCounts",
]
