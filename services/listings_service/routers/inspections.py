"""Inspection booking and lifecycle endpoints."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.db.session import get_async_db
from services.listings_service.models import InspectionStatus
from services.listings_service.schemas import (
    AvailableSlotsResponse,
    InspectionBook,
    InspectionBookResponse,
    InspectionCancel,
    InspectionComplete,
    InspectionReschedule,
    InspectionResponse,
    InspectionWithdraw,
    Slot,
)
from services.listings_service.services import inspections as service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/inspections", tags=["inspections"])


@router.get("/available-slots/{property_id}", response_model=AvailableSlotsResponse)
async def get_available_slots(
    property_id: uuid.UUID,
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_async_db),
):
    """15-minute slots between 09:00 and 17:00 local time for ``date``."""
    slots = await service.available_slots(db, property_id=property_id, day=day)
    return AvailableSlotsResponse(
        date=day, slots=[Slot(time=t, available=free) for t, free in slots]
    )


@router.post(
    "/book", response_model=InspectionBookResponse, status_code=status.HTTP_201_CREATED
)
async def book(
    body: InspectionBook,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    inspection = await service.book_inspection(
        db,
        lead_id=body.lead_id,
        property_id=body.property_id,
        slot_time=body.slot_time,
        user=user,
    )
    return InspectionBookResponse(inspection=InspectionResponse.model_validate(inspection))


@router.get("", response_model=list[InspectionResponse])
async def list_my_inspections(
    inspection_status: Optional[InspectionStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.list_inspections(db, user=current_user, status=inspection_status)


@router.get("/{inspection_id}", response_model=InspectionResponse)
async def get_inspection(
    inspection_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    ctx = await service.load_context(db, inspection_id)
    if not (
        current_user.is_admin
        or service.is_owner(ctx, current_user)
        or service.is_buyer(ctx, current_user)
    ):
        raise NotFoundError("Inspection")
    return ctx.inspection


@router.post("/{inspection_id}/confirm", response_model=InspectionResponse)
async def confirm(
    inspection_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.confirm_inspection(
        db, inspection_id=inspection_id, user=current_user
    )


@router.post("/{inspection_id}/complete", response_model=InspectionResponse)
async def complete(
    inspection_id: uuid.UUID,
    body: Optional[InspectionComplete] = None,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.complete_inspection(
        db,
        inspection_id=inspection_id,
        user=current_user,
        notes=body.notes if body else None,
    )


@router.post("/{inspection_id}/cancel", response_model=InspectionResponse)
async def cancel(
    inspection_id: uuid.UUID,
    body: Optional[InspectionCancel] = None,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.cancel_inspection(
        db,
        inspection_id=inspection_id,
        user=current_user,
        reason=body.reason if body else None,
    )


@router.post("/{inspection_id}/withdraw", response_model=InspectionResponse)
async def withdraw(
    inspection_id: uuid.UUID,
    body: Optional[InspectionWithdraw] = None,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.withdraw_inspection(
        db,
        inspection_id=inspection_id,
        user=current_user,
        reason=body.reason if body else None,
    )


@router.post("/{inspection_id}/reschedule", response_model=InspectionResponse)
async def reschedule(
    inspection_id: uuid.UUID,
    body: InspectionReschedule,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await service.reschedule_inspection(
        db,
        inspection_id=inspection_id,
        user=current_user,
        slot_time=body.slot_time,
        reason=body.reason,
    )
