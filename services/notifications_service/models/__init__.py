"""Notifications Service models package.

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.notifications_service.models.enums import NotificationType  # noqa: F401
from services.notifications_service.models.notification import Notification  # noqa: F401

__all__ = [
    "NotificationType",
    "Notification",
]
