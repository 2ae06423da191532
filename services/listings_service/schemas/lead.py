"""Lead schemas."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.phone import normalize_phone
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.listings_service.models.enums import LeadStatus


class LeadSubmit(BaseModel):
    property_id: uuid.UUID
    buyer_name: str = Field(..., min_length=2, max_length=120)
    buyer_phone: str
    buyer_email: Optional[EmailStr] = None
    tracking_code: Optional[str] = Field(None, alias="source_code")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("buyer_phone")
    @classmethod
    def normalise_phone(cls, v: str) -> str:
        normalized = normalize_phone(v)
        if not normalized:
            raise ValueError("Invalid phone number")
        return normalized


class LeadResponse(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    creator_id: Optional[str] = None
    buyer_name: str
    buyer_phone: str
    buyer_email: Optional[str] = None
    source_link: Optional[str] = None
    status: LeadStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeadSubmitResponse(BaseModel):
    message: str = "Lead submitted successfully"
    lead: LeadResponse
