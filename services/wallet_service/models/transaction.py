"""Transaction model: every money movement through a wallet."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONType
from services.wallet_service.models.enums import (
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    enum_values,
)
from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Transaction(Base):
    """A deposit, withdrawal, purchase or escrow movement.

    ``amount`` is what the user asked for, ``fee`` our/gateway charge and
    ``net_amount`` what actually lands (withdrawals) or is credited (deposits).
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("wallets.id"), nullable=True, index=True
    )
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    bank_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("bank_accounts.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    category: Mapped[TransactionCategory] = mapped_column(
        SAEnum(
            TransactionCategory,
            name="transaction_category_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fee: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    net_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="NGN", nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus,
            name="transaction_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=TransactionStatus.PENDING,
        nullable=False,
    )
    reference: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    gateway_reference: Mapped[Optional[str]] = mapped_column(
        String, index=True, nullable=True
    )
    transfer_code: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gateway_status: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    txn_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONType, nullable=True
    )
    webhook_received: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    webhook_payload: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    initiated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    failed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        Index("ix_transactions_wallet_created", "wallet_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.reference} {self.type.value}/{self.category.value} {self.amount} {self.status.value}>"
