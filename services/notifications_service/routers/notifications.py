"""Notification inbox endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError
from libs.db.session import get_async_db
from services.notifications_service.models import Notification
from services.notifications_service.schemas import (
    MarkAllReadResponse,
    NotificationCounts,
    NotificationListResponse,
    NotificationResponse,
)
from services.notifications_service.services.notify import count_unread, mark_all_read
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    base = select(Notification).where(Notification.user_id == current_user.user_id)
    count_base = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == current_user.user_id)
    )
    if unread_only:
        base = base.where(Notification.read.is_(False))
        count_base = count_base.where(Notification.read.is_(False))

    total = (await db.execute(count_base)).scalar() or 0
    result = await db.execute(
        base.order_by(desc(Notification.created_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return NotificationListResponse(
        notifications=list(result.scalars().all()),
        total=total,
        unread=await count_unread(db, current_user.user_id),
        page=page,
        limit=limit,
    )


@router.get("/counts", response_model=NotificationCounts)
async def notification_counts(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return NotificationCounts(unread=await count_unread(db, current_user.user_id))


@router.post("/mark-all-read", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return MarkAllReadResponse(updated=await mark_all_read(db, current_user.user_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    notification = await db.get(Notification, notification_id)
    # Other users' notifications look missing rather than forbidden
    if notification is None or notification.user_id != current_user.user_id:
        raise NotFoundError("Notification")
    if not notification.read:
        notification.read = True
        notification.read_at = utc_now()
        await db.commit()
        await db.refresh(notification)
    return notification
