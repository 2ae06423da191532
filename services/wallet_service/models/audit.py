"""Append-only audit trails: wallet activity and admin actions."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONType
from services.wallet_service.models.enums import (
    AdminActionType,
    WalletActivityAction,
    enum_values,
)
from sqlalchemy import BigInteger, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class WalletActivityLog(Base):
    """Per-wallet trail of security and balance events."""

    __tablename__ = "wallet_activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, index=True, nullable=True
    )
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    action: Mapped[WalletActivityAction] = mapped_column(
        SAEnum(
            WalletActivityAction,
            name="wallet_activity_action_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    balance_before: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    balance_after: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class AdminAction(Base):
    """Who did what to which entity from the back-office."""

    __tablename__ = "admin_actions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    action: Mapped[AdminActionType] = mapped_column(
        SAEnum(
            AdminActionType,
            name="admin_action_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    entity: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
