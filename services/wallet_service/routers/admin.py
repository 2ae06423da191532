"""Admin withdrawal review and transaction ledger endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.rate_limit import get_client_ip
from libs.db.session import get_async_db
from services.wallet_service.paystack_client import PaystackClient, get_paystack_client
from services.wallet_service.schemas import (
    AdminTransactionListResponse,
    PayoutListResponse,
    PayoutResponse,
    RejectPayoutRequest,
    TransactionStats,
)
from services.wallet_service.services.payouts import (
    AuditContext,
    approve_payout,
    complete_payout,
    list_payouts,
    reject_payout,
)
from services.wallet_service.services.reporting import (
    list_admin_transactions,
    transaction_stats,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/withdrawals", tags=["admin-withdrawals"])
ledger_router = APIRouter(prefix="/admin/transactions", tags=["admin-transactions"])


def _audit_context(request: Request, admin: AuthUser) -> AuditContext:
    return AuditContext(
        admin=admin,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.get("", response_model=PayoutListResponse)
async def list_withdrawals(
    withdrawal_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List withdrawal requests, newest first. ``status=all`` disables the filter."""
    return await list_payouts(db, status=withdrawal_status, page=page, limit=limit)


@router.post("/{payout_id}/approve", response_model=PayoutResponse)
async def approve_withdrawal(
    payout_id: uuid.UUID,
    request: Request,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    payout = await approve_payout(
        db,
        payout_id=payout_id,
        ctx=_audit_context(request, admin),
        paystack=paystack,
    )
    logger.info("Admin %s approved withdrawal %s", admin.user_id, payout_id)
    return payout


@router.post("/{payout_id}/reject", response_model=PayoutResponse)
async def reject_withdrawal(
    payout_id: uuid.UUID,
    body: RejectPayoutRequest,
    request: Request,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel a pending withdrawal and refund its net amount to the wallet."""
    payout = await reject_payout(
        db,
        payout_id=payout_id,
        reason=body.reason,
        ctx=_audit_context(request, admin),
    )
    logger.info("Admin %s rejected withdrawal %s", admin.user_id, payout_id)
    return payout


@router.post("/{payout_id}/complete", response_model=PayoutResponse)
async def complete_withdrawal(
    payout_id: uuid.UUID,
    request: Request,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await complete_payout(
        db, payout_id=payout_id, ctx=_audit_context(request, admin)
    )


@ledger_router.get("", response_model=AdminTransactionListResponse)
async def list_transactions(
    txn_type: Optional[str] = Query(None, alias="type"),
    txn_status: Optional[str] = Query(None, alias="status"),
    user_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All platform transactions with owner details, newest first."""
    return await list_admin_transactions(
        db,
        txn_type=txn_type,
        status=txn_status,
        user_type=user_type,
        page=page,
        limit=limit,
    )


@ledger_router.get("/stats", response_model=TransactionStats)
async def get_transaction_stats(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await transaction_stats(db)
