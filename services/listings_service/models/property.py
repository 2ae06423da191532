"""Developer property listings."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.listings_service.models.enums import (
    ListingType,
    PropertyStatus,
    VerificationStatus,
    enum_values,
)
from sqlalchemy import BigInteger, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_properties_price"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    developer_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # Kobo
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    listing_type: Mapped[ListingType] = mapped_column(
        SAEnum(
            ListingType,
            name="listing_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=ListingType.SALE,
        nullable=False,
    )
    status: Mapped[PropertyStatus] = mapped_column(
        SAEnum(
            PropertyStatus,
            name="property_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PropertyStatus.DRAFT,
        nullable=False,
    )
    verification_status: Mapped[VerificationStatus] = mapped_column(
        SAEnum(
            VerificationStatus,
            name="verification_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=VerificationStatus.PENDING,
        nullable=False,
    )
    verified_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    leads_generated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Property {self.id} {self.title!r} status={self.status}>"
