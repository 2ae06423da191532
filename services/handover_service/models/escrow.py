"""Purchase money held by the platform until handover completes."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.handover_service.models.enums import EscrowStatus, enum_values
from sqlalchemy import BigInteger, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class EscrowTransaction(Base):
    __tablename__ = "escrow_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("transactions.id"), unique=True, nullable=False
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id"), index=True, nullable=False
    )
    buyer_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    developer_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    # Kobo
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[EscrowStatus] = mapped_column(
        SAEnum(
            EscrowStatus,
            name="escrow_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=EscrowStatus.HELD,
        nullable=False,
    )
    released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
