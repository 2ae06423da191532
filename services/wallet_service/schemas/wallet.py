"""Wallet request/response schemas."""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from services.wallet_service.models.enums import WalletUserType

PIN_PATTERN = re.compile(r"^\d{4}$")


def _check_pin(value: str) -> str:
    if not PIN_PATTERN.match(value or ""):
        raise ValueError("PIN must be exactly 4 digits")
    return value


class WalletResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    user_type: WalletUserType
    available_balance: int
    locked_balance: int
    currency: str
    is_setup: bool
    is_active: bool
    pin_locked_until: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WalletSetupRequest(BaseModel):
    pin: str
    confirm_pin: str

    @field_validator("pin")
    @classmethod
    def pin_format(cls, v: str) -> str:
        return _check_pin(v)

    @model_validator(mode="after")
    def pins_match(self):
        if self.pin != self.confirm_pin:
            raise ValueError("PINs do not match")
        return self


class WalletSetupResponse(BaseModel):
    success: bool = True
    message: str
    wallet: WalletResponse


class VerifyPinRequest(BaseModel):
    pin: str


class VerifyPinResponse(BaseModel):
    success: bool = True
    message: str = "PIN verified"


class WithdrawRequest(BaseModel):
    """Amounts are in kobo."""

    amount: int = Field(..., gt=0)
    bank_account_id: uuid.UUID
    pin: str
    narration: Optional[str] = Field(None, max_length=100)


class AddFundsRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in kobo")


class AddFundsResponse(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str
    amount: int
    fee: int
    net_amount: int


class VerifyDepositRequest(BaseModel):
    reference: str = Field(..., min_length=1)
