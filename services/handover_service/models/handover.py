"""Post-sale handover workflow between buyer, developer and the platform."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONType
from services.handover_service.models.enums import (
    HandoverStatus,
    HandoverType,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Handover(Base):
    """
    payment_confirmed -> pending_developer_docs -> docs_submitted ->
    docs_verified -> reach_signed -> buyer_signed -> keys_released -> completed
    """

    __tablename__ = "handovers"
    __table_args__ = (
        UniqueConstraint("property_id", "buyer_id", name="uq_handovers_property_buyer"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id"), index=True, nullable=False
    )
    buyer_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    developer_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    escrow_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("escrow_transactions.id"), nullable=True
    )
    inspection_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    type: Mapped[HandoverType] = mapped_column(
        SAEnum(
            HandoverType,
            name="handover_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    status: Mapped[HandoverStatus] = mapped_column(
        SAEnum(
            HandoverStatus,
            name="handover_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=HandoverStatus.PAYMENT_CONFIRMED,
        nullable=False,
    )
    # Storage keys / URLs of uploaded documents; files live in object storage
    documents: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    documents_submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    documents_verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reach_signed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    buyer_signed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    keys_released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    keys_delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Handover {self.id} status={self.status}>"
