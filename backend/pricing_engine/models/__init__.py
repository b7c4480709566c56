"""ORM models package export."""

from pricing_engine.models.booking import Booking, BookingStatus, GuestType
from pricing_engine.models.listing import Listing, PropertyType
from pricing_engine.models.membership import (
    LoyaltyTier,
    MembershipPlan,
    MembershipStatus,
)
from pricing_engine.models.promotion import (
    DiscountKind,
    Promotion,
    PromotionRedemption,
    RedemptionStatus,
)
from pricing_engine.models.user import User, UserRole

__all__ = [
    "Booking",
    "BookingStatus",
    "GuestType",
    "Listing",
    "PropertyType",
    "LoyaltyTier",
    "MembershipPlan",
    "MembershipStatus",
    "DiscountKind",
    "Promotion",
    "PromotionRedemption",
    "RedemptionStatus",
    "User",
    "UserRole",
]
