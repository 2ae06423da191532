"""Wallet model: one NGN account per user."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.wallet_service.models.enums import WalletUserType, enum_values
from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Wallet(Base):
    """Balances are kobo. ``locked_balance`` holds funds in flight (withdrawals, escrow)."""

    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    user_type: Mapped[WalletUserType] = mapped_column(
        SAEnum(
            WalletUserType,
            name="wallet_user_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=WalletUserType.BUYER,
        nullable=False,
    )
    available_balance: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False
    )
    locked_balance: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="NGN", nullable=False)

    # PIN protection for money-out operations
    pin_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    pin_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pin_locked_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_setup: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "available_balance >= 0", name="ck_wallet_available_non_negative"
        ),
        CheckConstraint("locked_balance >= 0", name="ck_wallet_locked_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Wallet {self.id} user_id={self.user_id} "
            f"available={self.available_balance} locked={self.locked_balance}>"
        )
