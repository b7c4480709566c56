"""Listing model (read-only for pricing)."""
from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_engine.db.base import Base
from pricing_engine.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from pricing_engine.models.user import User


class PropertyType(str, enum.Enum):
    """Accommodation classification used by promotion scoping."""

    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"
    HOMESTAY = "homestay"
    HOTEL = "hotel"
    RESORT = "resort"
    BUNGALOW = "bungalow"
    OTHER = "other"


class Listing(TimestampMixin, Base):
    """Bookable accommodation owned by a host."""

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    host_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(240), nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(
        Enum(PropertyType), nullable=False
    )
    base_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    service_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    host: Mapped["User"] = relationship("User")
