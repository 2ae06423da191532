"""Property schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.listings_service.models.enums import (
    ListingType,
    PropertyStatus,
    VerificationStatus,
)


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    price: int = Field(..., ge=0, description="Price in kobo")
    listing_type: ListingType = ListingType.SALE
    publish: bool = Field(
        True, description="List as active immediately; otherwise saved as draft"
    )


class PropertyResponse(BaseModel):
    id: uuid.UUID
    developer_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    price: int
    listing_type: ListingType
    status: PropertyStatus
    verification_status: VerificationStatus
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    leads_generated: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    properties: list[PropertyResponse]
    total: int
    page: int
    limit: int


class PropertyReviewRequest(BaseModel):
    notes: Optional[str] = None
    reason: Optional[str] = None
