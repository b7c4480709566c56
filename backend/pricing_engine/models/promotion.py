"""Promotion code and redemption models."""

from __future__ import annotations

import datetime
import enum
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_engine.db.base import Base
from pricing_engine.models.mixins import TimestampMixin
from pricing_engine.models.types import JSONB_TYPE


class DiscountKind(str, enum.Enum):
    """How a promotion's discount value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class RedemptionStatus(str, enum.Enum):
    """Redemption states: reserved for the user, or consumed by a booking."""

    ACTIVE = "active"
    USED = "used"


class Promotion(TimestampMixin, Base):
    """Promotion code definition with scoping and usage caps."""

    __tablename__ = "promotions"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_promotions_used_count"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(240), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    discount_kind: Mapped[DiscountKind] = mapped_column(
        Enum(DiscountKind), nullable=False
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    max_discount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    min_booking_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    valid_from: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    valid_until: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    max_uses: Mapped[int | None] = mapped_column(Integer)
    max_uses_per_user: Mapped[int | None] = mapped_column(Integer)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    listing_ids: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    property_types: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    allowed_membership_tiers: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    user_ids: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    stack_with_membership: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    stack_with_promotions: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PromotionRedemption(TimestampMixin, Base):
    """One row per (promotion, user) tracking whether the code is in use."""

    __tablename__ = "promotion_redemptions"
    __table_args__ = (
        UniqueConstraint("promotion_id", "user_id", name="uq_redemption_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    promotion_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[RedemptionStatus] = mapped_column(
        Enum(RedemptionStatus), default=RedemptionStatus.ACTIVE, nullable=False
    )
    applied_booking_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )
    # Every booking currently carrying the code through this user's redemption.
    booking_ids: Mapped[list[str]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONB_TYPE, default=dict, nullable=False
    )

    promotion: Mapped[Promotion] = relationship("Promotion")
