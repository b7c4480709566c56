"""Booking models."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_engine.db.base import Base
from pricing_engine.models.mixins import TimestampMixin
from pricing_engine.models.types import JSONB_TYPE

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from pricing_engine.models.listing import Listing
    from pricing_engine.models.user import User


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class GuestType(str, enum.Enum):
    """Whether the booking belongs to a registered guest."""

    REGISTERED = "registered"
    WALK_IN = "walk_in"


def _money_column() -> Any:
    return mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)


class Booking(TimestampMixin, Base):
    """A reservation and its price breakdown."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    host_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    guest_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    guest_type: Mapped[GuestType] = mapped_column(
        Enum(GuestType), default=GuestType.REGISTERED, nullable=False
    )
    contact_name: Mapped[str | None] = mapped_column(String(240))
    contact_email: Mapped[str | None] = mapped_column(String(320))
    contact_phone: Mapped[str | None] = mapped_column(String(32))
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)

    base_price: Mapped[Decimal] = _money_column()
    cleaning_fee: Mapped[Decimal] = _money_column()
    service_fee: Mapped[Decimal] = _money_column()
    additional_services_total: Mapped[Decimal] = _money_column()
    membership_discount: Mapped[Decimal] = _money_column()
    promotion_discount: Mapped[Decimal] = _money_column()
    discount: Mapped[Decimal] = _money_column()
    total_price: Mapped[Decimal] = _money_column()
    applied_adjustments: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )

    listing: Mapped["Listing"] = relationship("Listing")
    guest: Mapped["User | None"] = relationship("User", foreign_keys=[guest_id])
    host: Mapped["User"] = relationship("User", foreign_keys=[host_id])
