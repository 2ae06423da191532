"""Buyer enquiries against a property."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.listings_service.models.enums import LeadStatus, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Lead(Base):
    __tablename__ = "leads"
    # One lead per phone number per property
    __table_args__ = (
        UniqueConstraint("property_id", "buyer_phone", name="uq_leads_property_phone"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True, nullable=False
    )
    creator_id: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)
    buyer_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    buyer_name: Mapped[str] = mapped_column(String, nullable=False)
    buyer_phone: Mapped[str] = mapped_column(String, nullable=False)
    buyer_email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    source_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status: Mapped[LeadStatus] = mapped_column(
        SAEnum(
            LeadStatus,
            name="lead_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=LeadStatus.NEW,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
