"""Handover workflow transitions.

Each step is owned by one party: the admin confirms payment, verifies the
developer's documents, signs for Reach and finally completes the handover,
which releases the escrowed purchase money to the developer.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.currency import format_naira
from libs.common.datetime_utils import utc_now
from libs.common.errors import ForbiddenError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.handover_service.models import (
    EscrowStatus,
    EscrowTransaction,
    Handover,
    HandoverStatus,
)
from services.handover_service.schemas import SubmitDocumentsRequest
from services.notifications_service.models import NotificationType
from services.notifications_service.services.notify import create_notification
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    WalletActivityAction,
    WalletUserType,
)
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.wallet_ops import (
    generate_reference,
    get_or_create_wallet,
    unlock_to_available,
)
from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_handover(db: AsyncSession, handover_id: uuid.UUID) -> Handover:
    handover = await db.get(Handover, handover_id)
    if handover is None:
        raise NotFoundError("Handover")
    return handover


async def get_visible_handover(
    db: AsyncSession, *, handover_id: uuid.UUID, user: AuthUser
) -> Handover:
    handover = await get_handover(db, handover_id)
    if user.is_admin or user.user_id in (handover.buyer_id, handover.developer_id):
        return handover
    raise NotFoundError("Handover")


async def list_handovers(db: AsyncSession, *, user: AuthUser) -> list[Handover]:
    query = select(Handover).order_by(desc(Handover.created_at))
    if user.has_role("developer"):
        query = query.where(Handover.developer_id == user.user_id)
    elif not user.is_admin:
        query = query.where(Handover.buyer_id == user.user_id)
    result = await db.execute(query)
    return list(result.scalars().all())


def _require_developer(handover: Handover, user: AuthUser) -> None:
    if handover.developer_id != user.user_id and not user.is_admin:
        raise ForbiddenError("Forbidden")


def _require_buyer(handover: Handover, user: AuthUser) -> None:
    if handover.buyer_id != user.user_id and not user.is_admin:
        raise ForbiddenError("Forbidden")


async def _save(db: AsyncSession, handover: Handover) -> Handover:
    await db.commit()
    await db.refresh(handover)
    logger.info(
        "Handover %s moved to %s",
        handover.id,
        handover.status.value,
        extra={"extra_fields": {"property_id": str(handover.property_id)}},
    )
    return handover


async def _notify(
    db: AsyncSession, handover: Handover, user_id: Optional[str], title: str, body: str
) -> None:
    await create_notification(
        db,
        user_id=user_id,
        type=NotificationType.HANDOVER_UPDATE,
        title=title,
        body=body,
        data={"handover_id": str(handover.id), "property_id": str(handover.property_id)},
    )


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def confirm_payment(db: AsyncSession, *, handover_id: uuid.UUID) -> Handover:
    handover = await get_handover(db, handover_id)
    if handover.status != HandoverStatus.PAYMENT_CONFIRMED:
        raise ValidationError("Payment has already been confirmed for this handover")

    handover.status = HandoverStatus.PENDING_DEVELOPER_DOCS
    if handover.payment_confirmed_at is None:
        handover.payment_confirmed_at = utc_now()
    await _save(db, handover)
    await _notify(
        db,
        handover,
        handover.developer_id,
        "Documents needed",
        "Payment is confirmed. Please submit the property documents for handover.",
    )
    return handover


async def submit_documents(
    db: AsyncSession,
    *,
    handover_id: uuid.UUID,
    developer: AuthUser,
    data: SubmitDocumentsRequest,
) -> Handover:
    handover = await get_handover(db, handover_id)
    _require_developer(handover, developer)
    if handover.status != HandoverStatus.PENDING_DEVELOPER_DOCS:
        raise ValidationError("Handover is not awaiting developer documents")

    handover.documents = [
        {"document_type": doc.document_type, "file_url": str(doc.file_url)}
        for doc in data.documents
    ]
    if data.notes:
        handover.notes = data.notes
    handover.status = HandoverStatus.DOCS_SUBMITTED
    handover.documents_submitted_at = utc_now()
    return await _save(db, handover)


async def verify_documents(db: AsyncSession, *, handover_id: uuid.UUID) -> Handover:
    handover = await get_handover(db, handover_id)
    if handover.status != HandoverStatus.DOCS_SUBMITTED:
        raise ValidationError("Documents have not been submitted")

    handover.status = HandoverStatus.DOCS_VERIFIED
    handover.documents_verified_at = utc_now()
    await _save(db, handover)
    await _notify(
        db,
        handover,
        handover.developer_id,
        "Documents verified",
        "Your handover documents have been verified.",
    )
    return handover


async def reach_sign(db: AsyncSession, *, handover_id: uuid.UUID) -> Handover:
    handover = await get_handover(db, handover_id)
    if handover.status != HandoverStatus.DOCS_VERIFIED:
        raise ValidationError("Documents must be verified before Reach signs")

    handover.status = HandoverStatus.REACH_SIGNED
    handover.reach_signed_at = utc_now()
    await _save(db, handover)
    await _notify(
        db,
        handover,
        handover.buyer_id,
        "Documents ready to sign",
        "Your property documents are ready. Please review and sign them.",
    )
    return handover


async def buyer_sign(
    db: AsyncSession, *, handover_id: uuid.UUID, buyer: AuthUser
) -> Handover:
    handover = await get_handover(db, handover_id)
    _require_buyer(handover, buyer)
    if handover.status != HandoverStatus.REACH_SIGNED:
        raise ValidationError("Reach must sign documents first")

    handover.status = HandoverStatus.BUYER_SIGNED
    handover.buyer_signed_at = utc_now()
    await _save(db, handover)
    await _notify(
        db,
        handover,
        handover.developer_id,
        "Buyer signed",
        "The buyer has signed the documents. You can now release the keys.",
    )
    return handover


async def release_keys(
    db: AsyncSession, *, handover_id: uuid.UUID, developer: AuthUser
) -> Handover:
    handover = await get_handover(db, handover_id)
    _require_developer(handover, developer)
    if handover.status != HandoverStatus.BUYER_SIGNED:
        raise ValidationError("Buyer must sign documents before keys are released")

    handover.status = HandoverStatus.KEYS_RELEASED
    handover.keys_released_at = utc_now()
    await _save(db, handover)
    await _notify(
        db,
        handover,
        handover.buyer_id,
        "Keys released",
        "The developer has released your keys. Please confirm once you receive them.",
    )
    return handover


async def confirm_keys(
    db: AsyncSession, *, handover_id: uuid.UUID, buyer: AuthUser
) -> Handover:
    handover = await get_handover(db, handover_id)
    _require_buyer(handover, buyer)
    if handover.status != HandoverStatus.KEYS_RELEASED or handover.keys_released_at is None:
        raise ValidationError("Keys have not been released yet")
    if handover.keys_delivered_at is None:
        handover.keys_delivered_at = utc_now()
    return await _save(db, handover)


async def mark_complete(
    db: AsyncSession, *, handover_id: uuid.UUID, admin: AuthUser
) -> Handover:
    """Close the handover and release the escrowed amount to the developer.

    Both the handover and its escrow move with conditional UPDATEs, so two
    concurrent completions release the money once.
    """
    handover = await get_handover(db, handover_id)
    if handover.status == HandoverStatus.COMPLETED:
        raise ValidationError("Handover is already completed")
    if not (
        handover.documents_verified_at
        and handover.buyer_signed_at
        and handover.keys_released_at
        and handover.keys_delivered_at
    ):
        raise ValidationError("Cannot complete handover: obligations not met")

    now = utc_now()
    closed = await db.execute(
        update(Handover)
        .where(Handover.id == handover.id, Handover.status != HandoverStatus.COMPLETED)
        .values(status=HandoverStatus.COMPLETED, completed_at=now)
        .execution_options(synchronize_session=False)
    )
    if not closed.rowcount:
        await db.rollback()
        raise ValidationError("Handover is already completed")

    escrow = (
        await db.get(EscrowTransaction, handover.escrow_id) if handover.escrow_id else None
    )
    released_amount = 0
    developer_wallet = None
    if escrow is not None:
        released = await db.execute(
            update(EscrowTransaction)
            .where(
                EscrowTransaction.id == escrow.id,
                EscrowTransaction.status == EscrowStatus.HELD,
            )
            .values(status=EscrowStatus.RELEASED, released_at=now)
            .execution_options(synchronize_session=False)
        )
        if released.rowcount:
            developer_wallet = await get_or_create_wallet(
                db, user_id=handover.developer_id, user_type=WalletUserType.DEVELOPER
            )
            released_amount = escrow.amount
            await unlock_to_available(
                db, wallet_id=developer_wallet.id, amount=released_amount
            )
            db.add(
                Transaction(
                    wallet_id=developer_wallet.id,
                    user_id=handover.developer_id,
                    type=TransactionType.CREDIT,
                    category=TransactionCategory.ESCROW_RELEASE,
                    amount=released_amount,
                    fee=0,
                    net_amount=released_amount,
                    status=TransactionStatus.SUCCESSFUL,
                    reference=generate_reference(),
                    description="Escrow released on handover completion",
                    txn_metadata={
                        "handover_id": str(handover.id),
                        "escrow_id": str(escrow.id),
                        "property_id": str(handover.property_id),
                        "released_by": admin.user_id,
                    },
                    completed_at=now,
                )
            )

    await _save(db, handover)
    if escrow is not None:
        await db.refresh(escrow)

    if developer_wallet is not None:
        await log_wallet_activity(
            db,
            user_id=handover.developer_id,
            wallet_id=developer_wallet.id,
            action=WalletActivityAction.ESCROW_RELEASED,
            amount=released_amount,
            details={"handover_id": str(handover.id), "escrow_id": str(escrow.id)},
        )
        await _notify(
            db,
            handover,
            handover.developer_id,
            "Funds released",
            f"{format_naira(released_amount)} has been released to your wallet.",
        )
    await _notify(
        db,
        handover,
        handover.buyer_id,
        "Handover complete",
        "Your property handover is complete. Congratulations!",
    )
    return handover
