"""Property inspection bookings."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.listings_service.models.enums import InspectionStatus, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column


class Inspection(Base):
    """
    A buyer's visit to a property at a 15-minute slot.

    booked -> confirmed -> completed; booked/confirmed -> cancelled;
    completed -> withdrawn (buyer no longer interested).
    """

    __tablename__ = "inspections"
    __table_args__ = (
        Index("ix_inspections_property_slot", "property_id", "slot_time"),
        # At most one live booking per slot
        Index(
            "uq_inspections_live_slot",
            "property_id",
            "slot_time",
            unique=True,
            postgresql_where=text("status IN ('booked', 'confirmed')"),
            sqlite_where=text("status IN ('booked', 'confirmed')"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    buyer_id: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)
    slot_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[InspectionStatus] = mapped_column(
        SAEnum(
            InspectionStatus,
            name="inspection_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=InspectionStatus.BOOKED,
        nullable=False,
    )

    confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    confirmed_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completion_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    withdrawn_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    withdrawal_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Inspection {self.id} status={self.status} slot={self.slot_time}>"
