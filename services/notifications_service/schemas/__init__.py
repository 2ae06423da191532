"""Notifications Service schemas package."""

from services.notifications_service.schemas.notification import (  # noqa: F401
    MarkAllReadResponse,
    NotificationCounts,
    NotificationListResponse,
    NotificationResponse,
)

__all__ = [
    "NotificationResponse",
    "NotificationListResponse",
    "NotificationCounts",
    "MarkAllReadResponse",
]
