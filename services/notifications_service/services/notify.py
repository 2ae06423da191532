"""Best-effort in-app notifications.

Callers run these after their own commit; a failure here is logged and never
reaches the caller.
"""

from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.notifications_service.models import Notification, NotificationType
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_notification(
    db: AsyncSession,
    *,
    user_id: Optional[str],
    type: NotificationType,
    title: str,
    body: str,
    data: Optional[dict] = None,
) -> Optional[Notification]:
    if not user_id:
        return None
    notification = Notification(
        user_id=user_id, type=type, title=title, body=body, data=data or {}
    )
    try:
        db.add(notification)
        await db.commit()
    except Exception:
        logger.exception("Failed to create %s notification for %s", type.value, user_id)
        await db.rollback()
        return None
    return notification


async def count_unread(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return result.scalar() or 0


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True, read_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
