"""Inspection schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.listings_service.models.enums import InspectionStatus


class InspectionBook(BaseModel):
    lead_id: uuid.UUID
    property_id: uuid.UUID
    slot_time: datetime


class InspectionComplete(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class InspectionCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class InspectionWithdraw(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class InspectionReschedule(BaseModel):
    slot_time: datetime
    reason: Optional[str] = Field(None, max_length=500)


class InspectionResponse(BaseModel):
    id: uuid.UUID
    lead_id: Optional[uuid.UUID] = None
    property_id: uuid.UUID
    buyer_id: Optional[str] = None
    slot_time: datetime
    status: InspectionStatus
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    withdrawn_at: Optional[datetime] = None
    withdrawal_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InspectionBookResponse(BaseModel):
    message: str = "Inspection booked successfully"
    inspection: InspectionResponse


class Slot(BaseModel):
    time: datetime
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: date
    slots: list[Slot]
