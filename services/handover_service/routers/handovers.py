"""Handover workflow endpoints."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user, require_admin, require_roles
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.handover_service.schemas import (
    HandoverActionResponse,
    HandoverListResponse,
    HandoverResponse,
    SubmitDocumentsRequest,
)
from services.handover_service.services import workflow
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/handovers", tags=["handovers"])


def _action(message: str, handover) -> HandoverActionResponse:
    return HandoverActionResponse(
        message=message, handover=HandoverResponse.model_validate(handover)
    )


@router.get("", response_model=HandoverListResponse)
async def list_my_handovers(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    handovers = await workflow.list_handovers(db, user=current_user)
    return HandoverListResponse(
        handovers=[HandoverResponse.model_validate(h) for h in handovers],
        total=len(handovers),
    )


@router.get("/{handover_id}", response_model=HandoverResponse)
async def get_handover(
    handover_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await workflow.get_visible_handover(
        db, handover_id=handover_id, user=current_user
    )


@router.post("/{handover_id}/confirm-payment", response_model=HandoverActionResponse)
async def confirm_payment(
    handover_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.confirm_payment(db, handover_id=handover_id)
    return _action("Payment confirmed", handover)


@router.post("/{handover_id}/submit-documents", response_model=HandoverActionResponse)
async def submit_documents(
    handover_id: uuid.UUID,
    body: SubmitDocumentsRequest,
    developer: AuthUser = Depends(require_roles("developer", "admin")),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.submit_documents(
        db, handover_id=handover_id, developer=developer, data=body
    )
    return _action("Documents submitted", handover)


@router.post("/{handover_id}/verify-documents", response_model=HandoverActionResponse)
async def verify_documents(
    handover_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.verify_documents(db, handover_id=handover_id)
    return _action("Documents verified", handover)


@router.post("/{handover_id}/reach-sign", response_model=HandoverActionResponse)
async def reach_sign(
    handover_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.reach_sign(db, handover_id=handover_id)
    return _action("Documents signed by Reach", handover)


@router.post("/{handover_id}/buyer-sign", response_model=HandoverActionResponse)
async def buyer_sign(
    handover_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.buyer_sign(db, handover_id=handover_id, buyer=current_user)
    return _action("Documents signed successfully", handover)


@router.post("/{handover_id}/release-keys", response_model=HandoverActionResponse)
async def release_keys(
    handover_id: uuid.UUID,
    developer: AuthUser = Depends(require_roles("developer", "admin")),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.release_keys(
        db, handover_id=handover_id, developer=developer
    )
    return _action("Key release confirmed", handover)


@router.post("/{handover_id}/confirm-keys", response_model=HandoverActionResponse)
async def confirm_keys(
    handover_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.confirm_keys(db, handover_id=handover_id, buyer=current_user)
    return _action("Key delivery confirmed", handover)


@router.post("/{handover_id}/mark-complete", response_model=HandoverActionResponse)
async def mark_complete(
    handover_id: uuid.UUID,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    handover = await workflow.mark_complete(db, handover_id=handover_id, admin=admin)
    return _action("Handover completed", handover)
