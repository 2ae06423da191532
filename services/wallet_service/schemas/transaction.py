"""Transaction schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.users_service.models.enums import UserRole
from services.wallet_service.models.enums import (
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)


class TransactionResponse(BaseModel):
    id: uuid.UUID
    wallet_id: Optional[uuid.UUID] = None
    user_id: str
    bank_account_id: Optional[uuid.UUID] = None
    type: TransactionType
    category: TransactionCategory
    amount: int
    fee: int
    net_amount: int
    currency: str
    status: TransactionStatus
    reference: str
    gateway_reference: Optional[str] = None
    description: Optional[str] = None
    failure_reason: Optional[str] = None
    metadata: Optional[dict] = Field(None, validation_alias="txn_metadata")
    initiated_at: datetime
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
    page: int
    limit: int
    pages: int


class WebhookAck(BaseModel):
    received: bool = True


class AdminTransactionUser(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class AdminTransactionResponse(TransactionResponse):
    user: Optional[AdminTransactionUser] = None


class AdminTransactionListResponse(BaseModel):
    transactions: list[AdminTransactionResponse]
    total: int
    page: int
    limit: int
    pages: int


class TransactionStats(BaseModel):
    total: int
    total_volume: int = Field(..., description="Settled amount in kobo")
    pending: int
    failed: int
