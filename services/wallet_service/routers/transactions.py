"""Gateway transaction verification endpoint."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.wallet_service.paystack_client import PaystackClient, get_paystack_client
from services.wallet_service.schemas import TransactionResponse
from services.wallet_service.services.verification import verify_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/{transaction_id}/verify", response_model=TransactionResponse)
async def verify_gateway_transaction(
    transaction_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Re-check a transaction with Paystack unless it is already successful."""
    return await verify_transaction(
        db, transaction_id=transaction_id, requester=current_user, paystack=paystack
    )
