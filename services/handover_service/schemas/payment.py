"""Property purchase checkout schemas."""

import uuid

from pydantic import BaseModel


class PropertyPaymentRequest(BaseModel):
    property_id: uuid.UUID


class PropertyPaymentResponse(BaseModel):
    transaction_id: uuid.UUID
    authorization_url: str
    access_code: str
    reference: str
    amount: int
