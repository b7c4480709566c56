"""User model for guests, hosts and administrators."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_engine.db.base import Base
from pricing_engine.models.membership import (
    LoyaltyTier,
    MembershipPlan,
    MembershipStatus,
)
from pricing_engine.models.mixins import TimestampMixin


class UserRole(str, enum.Enum):
    """Role enumeration for platform permissions."""

    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


class User(TimestampMixin, Base):
    """Registered user with membership and loyalty standing."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(240), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.GUEST, nullable=False
    )
    loyalty_tier: Mapped[LoyaltyTier | None] = mapped_column(
        Enum(LoyaltyTier), nullable=True
    )
    membership_status: Mapped[MembershipStatus] = mapped_column(
        Enum(MembershipStatus), default=MembershipStatus.INACTIVE, nullable=False
    )
    membership_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    membership_plan_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("membership_plans.id", ondelete="SET NULL"), nullable=True
    )

    membership_plan: Mapped[MembershipPlan | None] = relationship("MembershipPlan")
