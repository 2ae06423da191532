"""Property purchase checkout."""

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import require_roles
from libs.auth.models import AuthUser
from libs.common.rate_limit import deposit_limit
from libs.db.session import get_async_db
from services.handover_service.schemas import (
    PropertyPaymentRequest,
    PropertyPaymentResponse,
)
from services.handover_service.services.purchase import initialize_property_payment
from services.wallet_service.paystack_client import PaystackClient, get_paystack_client
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/initialize", response_model=PropertyPaymentResponse)
@deposit_limit
async def initialize_payment(
    body: PropertyPaymentRequest,
    request: Request,
    buyer: AuthUser = Depends(require_roles("buyer", "creator")),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Start a Paystack checkout for the full property price."""
    txn, init = await initialize_property_payment(
        db, buyer=buyer, property_id=body.property_id, paystack=paystack
    )
    return PropertyPaymentResponse(
        transaction_id=txn.id,
        authorization_url=init.authorization_url,
        access_code=init.access_code,
        reference=txn.reference,
        amount=txn.amount,
    )
