"""Bank account schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BankAccountCreate(BaseModel):
    bank_code: str = Field(..., min_length=3, max_length=10)
    account_number: str = Field(..., pattern=r"^\d{10}$")
    bank_name: Optional[str] = None


class BankAccountResponse(BaseModel):
    id: uuid.UUID
    bank_name: str
    bank_code: str
    account_number: str
    account_name: str
    is_verified: bool
    is_primary: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BankAccountDeleteResponse(BaseModel):
    success: bool = True
    promoted_primary_id: Optional[uuid.UUID] = None
