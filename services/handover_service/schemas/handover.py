"""Handover and escrow schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from services.handover_service.models.enums import (
    EscrowStatus,
    HandoverStatus,
    HandoverType,
)


class HandoverDocument(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=100)
    file_url: HttpUrl


class SubmitDocumentsRequest(BaseModel):
    documents: list[HandoverDocument] = Field(..., min_length=1)
    notes: Optional[str] = None


class EscrowResponse(BaseModel):
    id: uuid.UUID
    transaction_id: uuid.UUID
    amount: int
    status: EscrowStatus
    released_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HandoverResponse(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    buyer_id: str
    developer_id: str
    transaction_id: Optional[uuid.UUID] = None
    escrow_id: Optional[uuid.UUID] = None
    type: HandoverType
    status: HandoverStatus
    documents: Optional[list[dict]] = None
    notes: Optional[str] = None
    payment_confirmed_at: Optional[datetime] = None
    documents_submitted_at: Optional[datetime] = None
    documents_verified_at: Optional[datetime] = None
    reach_signed_at: Optional[datetime] = None
    buyer_signed_at: Optional[datetime] = None
    keys_released_at: Optional[datetime] = None
    keys_delivered_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HandoverListResponse(BaseModel):
    handovers: list[HandoverResponse]
    total: int


class HandoverActionResponse(BaseModel):
    message: str
    handover: HandoverResponse
