"""Payout (reviewed withdrawal) schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.wallet_service.models.enums import PayoutStatus


class PayoutRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in kobo")
    bank_account_id: uuid.UUID
    pin: str


class PayoutResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    wallet_id: uuid.UUID
    bank_account_id: Optional[uuid.UUID] = None
    amount: int
    fee: int
    net_amount: int
    status: PayoutStatus
    reference: str
    transfer_code: Optional[str] = None
    failure_reason: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PayoutListResponse(BaseModel):
    withdrawals: list[PayoutResponse]
    total: int
    page: int
    limit: int
    pages: int


class RejectPayoutRequest(BaseModel):
    reason: Optional[str] = None
