"""Configurable withdrawal limits per wallet user type."""

import uuid
from datetime import datetime

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.wallet_service.models.enums import WalletUserType, enum_values
from sqlalchemy import BigInteger, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Uuid
from sqlalchemy.orm import Mapped, mapped_column


class WithdrawalLimit(Base):
    """Overrides the built-in defaults for one user type. Amounts are kobo."""

    __tablename__ = "withdrawal_limits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_type: Mapped[WalletUserType] = mapped_column(
        SAEnum(
            WalletUserType,
            name="wallet_user_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        unique=True,
        nullable=False,
    )
    min_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_per_transaction: Mapped[int] = mapped_column(BigInteger, nullable=False)
    daily_limit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    monthly_limit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
