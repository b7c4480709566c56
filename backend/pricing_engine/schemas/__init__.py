"""Schema exports."""

from pricing_engine.schemas.booking import (
    AdjustmentRead,
    BookingCreate,
    BookingRead,
    GuestContactRead,
    MembershipAdjustmentRead,
    PromotionAdjustmentRead,
)
from pricing_engine.schemas.pricing import (
    CompetitivenessRead,
    CompetitivenessRequest,
    DailyPriceRead,
    PriceSuggestionRead,
    PriceSuggestionRequest,
)
from pricing_engine.schemas.promotion import PromotionApplyRequest

__all__ = [
    "AdjustmentRead",
    "BookingCreate",
    "BookingRead",
    "GuestContactRead",
    "MembershipAdjustmentRead",
    "PromotionAdjustmentRead",
    "CompetitivenessRead",
    "CompetitivenessRequest",
    "DailyPriceRead",
    "PriceSuggestionRead",
    "PriceSuggestionRequest",
    "PromotionApplyRequest",
]
