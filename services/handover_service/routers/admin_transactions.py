"""Admin recovery for property purchases whose completion did not run."""

import uuid

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.common.rate_limit import get_client_ip
from libs.db.session import get_async_db
from services.handover_service.schemas import HandoverActionResponse, HandoverResponse
from services.handover_service.services.purchase import complete_property_purchase
from services.wallet_service.models import (
    AdminAction,
    AdminActionType,
    Transaction,
    TransactionCategory,
    TransactionStatus,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/transactions", tags=["admin-transactions"])


@router.post("/{transaction_id}/create-handover", response_model=HandoverActionResponse)
async def create_handover(
    transaction_id: uuid.UUID,
    request: Request,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Re-run purchase completion for a settled transaction (idempotent)."""
    txn = await db.get(Transaction, transaction_id)
    if txn is None:
        raise NotFoundError("Transaction")
    payment_type = (txn.txn_metadata or {}).get("payment_type")
    if (
        txn.category != TransactionCategory.PROPERTY_PURCHASE
        and payment_type != TransactionCategory.PROPERTY_PURCHASE.value
    ):
        raise ValidationError("Transaction is not a property purchase")
    if txn.status not in (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED):
        raise ValidationError(
            "Transaction must be successful before creating handover. Verify payment first."
        )

    handover = await complete_property_purchase(db, transaction=txn)
    response = HandoverActionResponse(
        message="Handover ready", handover=HandoverResponse.model_validate(handover)
    )

    try:
        db.add(
            AdminAction(
                admin_id=admin.user_id,
                action=AdminActionType.HANDOVER_CREATED,
                entity="handover",
                entity_id=str(handover.id),
                details={"transaction_id": str(txn.id)},
                ip_address=get_client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )
        )
        await db.commit()
    except Exception:
        logger.exception("Failed to record handover creation by %s", admin.user_id)
        await db.rollback()

    return response
