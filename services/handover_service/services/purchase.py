"""Property purchase: checkout and post-payment completion.

``complete_property_purchase`` runs once a purchase transaction is settled,
either from payment verification or an admin re-run. It is idempotent per
(property, buyer): a second call returns the handover created by the first.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import format_naira
from libs.common.datetime_utils import utc_now
from libs.common.errors import GatewayError, ValidationError
from libs.common.logging import get_logger
from services.handover_service.models import (
    EscrowStatus,
    EscrowTransaction,
    Handover,
    HandoverStatus,
    HandoverType,
)
from services.listings_service.models import ListingType, Property, PropertyStatus
from services.listings_service.services.properties import get_property
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
from services.wallet_service.paystack_client import (
    PaymentInitialization,
    PaystackClient,
    PaystackError,
)
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.wallet_ops import (
    credit_locked,
    generate_reference,
    get_or_create_wallet,
    get_wallet,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

PURCHASABLE_LISTINGS = (ListingType.SALE, ListingType.RENT, ListingType.SHORT_LET)
SETTLED = (TransactionStatus.SUCCESSFUL, TransactionStatus.COMPLETED)


def handover_type_for(listing_type: ListingType) -> HandoverType:
    if listing_type == ListingType.SALE:
        return HandoverType.SALE
    if listing_type == ListingType.RENT:
        return HandoverType.LONG_TERM_RENTAL
    return HandoverType.SHORT_TERM_RENTAL


def _purchase_callback_url() -> str:
    settings = get_settings()
    return f"{settings.FRONTEND_URL.rstrip('/')}/payments/callback"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


async def initialize_property_payment(
    db: AsyncSession,
    *,
    buyer: AuthUser,
    property_id: uuid.UUID,
    paystack: PaystackClient,
) -> tuple[Transaction, PaymentInitialization]:
    prop = await get_property(db, property_id)
    if prop.status != PropertyStatus.ACTIVE:
        raise ValidationError("Property is not available for purchase")
    if prop.listing_type not in PURCHASABLE_LISTINGS:
        raise ValidationError("This property cannot be purchased")
    if prop.developer_id == buyer.user_id:
        raise ValidationError("You cannot purchase your own property")
    if prop.price <= 0:
        raise ValidationError("Property has no price set")
    if not buyer.email:
        raise ValidationError("An email address is required to make a payment")

    wallet = await get_wallet(db, buyer.user_id)
    reference = generate_reference()
    metadata = {
        "payment_type": TransactionCategory.PROPERTY_PURCHASE.value,
        "property_id": str(prop.id),
        "buyer_id": buyer.user_id,
        "developer_id": prop.developer_id,
    }
    txn = Transaction(
        wallet_id=wallet.id if wallet else None,
        user_id=buyer.user_id,
        type=TransactionType.CREDIT,
        category=TransactionCategory.PROPERTY_PURCHASE,
        amount=prop.price,
        fee=0,
        net_amount=prop.price,
        status=TransactionStatus.PENDING,
        reference=reference,
        description=f"Purchase of {prop.title}",
        txn_metadata=metadata,
    )
    db.add(txn)
    await db.commit()

    try:
        init = await paystack.initialize_transaction(
            email=buyer.email,
            amount_kobo=prop.price,
            reference=reference,
            callback_url=_purchase_callback_url(),
            metadata={**metadata, "transaction_id": str(txn.id)},
        )
    except PaystackError as exc:
        txn.status = TransactionStatus.FAILED
        txn.failure_reason = exc.message
        txn.failed_at = utc_now()
        await db.commit()
        raise GatewayError("Could not initialize payment. Please try again.")

    txn.gateway_reference = init.reference
    await db.commit()
    await db.refresh(txn)

    logger.info(
        "Purchase checkout %s started",
        reference,
        extra={
            "extra_fields": {
                "property_id": str(prop.id),
                "buyer_id": buyer.user_id,
                "amount": prop.price,
            }
        },
    )
    return txn, init


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


async def find_handover(
    db: AsyncSession, *, property_id: uuid.UUID, buyer_id: str
) -> Optional[Handover]:
    result = await db.execute(
        select(Handover).where(
            Handover.property_id == property_id, Handover.buyer_id == buyer_id
        )
    )
    return result.scalar_one_or_none()


def _purchase_parties(txn: Transaction) -> tuple[uuid.UUID, str]:
    metadata = txn.txn_metadata or {}
    raw_property_id = metadata.get("property_id")
    if not raw_property_id:
        raise ValidationError("Transaction is not a property purchase")
    try:
        property_id = uuid.UUID(str(raw_property_id))
    except ValueError:
        raise ValidationError("Transaction has an invalid property reference")
    return property_id, metadata.get("buyer_id") or txn.user_id


async def complete_property_purchase(
    db: AsyncSession, *, transaction: Transaction
) -> Handover:
    """Hold the payment in escrow and open the handover for a settled purchase."""
    if transaction.status not in SETTLED:
        raise ValidationError(
            "Transaction must be successful before creating handover. Verify payment first."
        )
    property_id, buyer_id = _purchase_parties(transaction)

    existing = await find_handover(db, property_id=property_id, buyer_id=buyer_id)
    if existing:
        return existing

    prop: Property = await get_property(db, property_id)
    developer_id = (transaction.txn_metadata or {}).get("developer_id") or prop.developer_id
    amount = transaction.net_amount

    # Commits on first use, so it runs before anything else is staged
    developer_wallet = await get_or_create_wallet(
        db, user_id=developer_id, user_type=WalletUserType.DEVELOPER
    )

    escrow = EscrowTransaction(
        transaction_id=transaction.id,
        property_id=prop.id,
        buyer_id=buyer_id,
        developer_id=developer_id,
        amount=amount,
        status=EscrowStatus.HELD,
    )
    db.add(escrow)
    await db.flush()

    handover = Handover(
        property_id=prop.id,
        buyer_id=buyer_id,
        developer_id=developer_id,
        transaction_id=transaction.id,
        escrow_id=escrow.id,
        type=handover_type_for(prop.listing_type),
        status=HandoverStatus.PAYMENT_CONFIRMED,
        payment_confirmed_at=utc_now(),
    )
    db.add(handover)

    await credit_locked(db, wallet_id=developer_wallet.id, amount=amount)
    prop.status = (
        PropertyStatus.SOLD if prop.listing_type == ListingType.SALE else PropertyStatus.RENTED
    )

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent completion won the race
        await db.rollback()
        existing = await find_handover(db, property_id=property_id, buyer_id=buyer_id)
        if existing:
            return existing
        raise
    await db.refresh(handover)

    logger.info(
        "Purchase %s completed: handover %s opened",
        transaction.reference,
        handover.id,
        extra={
            "extra_fields": {
                "property_id": str(prop.id),
                "escrow_id": str(escrow.id),
                "amount": amount,
            }
        },
    )

    await log_wallet_activity(
        db,
        user_id=developer_id,
        wallet_id=developer_wallet.id,
        action=WalletActivityAction.ESCROW_LOCKED,
        amount=amount,
        details={
            "transaction_id": str(transaction.id),
            "property_id": str(prop.id),
            "description": f"Property purchase - {prop.title} (locked until handover)",
        },
    )
    await create_notification(
        db,
        user_id=buyer_id,
        type=NotificationType.PAYMENT_RECEIVED,
        title="Payment confirmed",
        body=f"Your payment of {format_naira(amount)} for {prop.title} is confirmed. "
        "We'll guide you through the handover.",
        data={"property_id": str(prop.id), "handover_id": str(handover.id)},
    )
    await create_notification(
        db,
        user_id=developer_id,
        type=NotificationType.PAYMENT_RECEIVED,
        title="Property payment received",
        body=f"{format_naira(amount)} for {prop.title} is held in escrow until handover "
        "completes. Please submit the property documents.",
        data={"property_id": str(prop.id), "handover_id": str(handover.id)},
    )
    return handover
