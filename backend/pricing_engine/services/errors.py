"""Domain errors raised by the pricing and redemption services.

Every error carries a stable machine-readable ``code`` and a user-facing
message. Routers translate them into HTTP responses; services never build
HTTP errors themselves.
"""

from __future__ import annotations


class PricingError(ValueError):
    """Base class for expected pricing failures."""

    code = "pricing_error"
    default_message = "Unable to price booking"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BookingNotFound(PricingError):
    code = "booking_not_found"
    default_message = "Booking not found"


class ListingNotFound(PricingError):
    code = "listing_not_found"
    default_message = "Listing not found"


class PromotionNotFound(PricingError):
    code = "promotion_not_found"
    default_message = "Promotion code does not exist or is no longer active"


class Unauthorized(PricingError):
    code = "unauthorized"
    default_message = "Sign in to update this booking"


class Forbidden(PricingError):
    code = "forbidden"
    default_message = "You are not allowed to update this booking"


class InvalidCode(PricingError):
    code = "invalid_code"
    default_message = "Promotion code must be between 3 and 64 characters"


class InvalidStay(PricingError):
    code = "invalid_stay"
    default_message = "Check-out must be at least one night after check-in"


class NotYetValid(PricingError):
    code = "not_yet_valid"
    default_message = "Promotion code is not valid yet"


class Expired(PricingError):
    code = "expired"
    default_message = "Promotion code has expired"


class UsageLimitReached(PricingError):
    code = "usage_limit_reached"
    default_message = "Promotion code has reached its usage limit"


class LoginRequired(PricingError):
    code = "login_required"
    default_message = "Sign in to use this promotion code"


class NotEligible(PricingError):
    code = "not_eligible"
    default_message = "Promotion code does not apply to this booking"


class ConflictsWithMembership(PricingError):
    code = "conflicts_with_membership"
    default_message = "Promotion code cannot be combined with membership discounts"


class AnotherCodeApplied(PricingError):
    code = "another_code_applied"
    default_message = "Another promotion code is applied; remove it first"


class BelowMinimum(PricingError):
    code = "below_minimum"
    default_message = "Booking total is below the minimum for this promotion code"


class NoEffectiveDiscount(PricingError):
    code = "no_effective_discount"
    default_message = "Promotion code does not reduce the price of this booking"


class NoPromotionApplied(PricingError):
    code = "no_promotion_applied"
    default_message = "No promotion code is applied to this booking"


class TransientConflict(PricingError):
    code = "transient_conflict"
    default_message = "Booking is being updated by another request; try again"


__all__ = [
    "PricingError",
    "BookingNotFound",
    "ListingNotFound",
    "PromotionNotFound",
    "Unauthorized",
    "Forbidden",
    "InvalidCode",
    "InvalidStay",
    "NotYetValid",
    "Expired",
    "UsageLimitReached",
    "LoginRequired",
    "NotEligible",
    "ConflictsWithMembership",
    "AnotherCodeApplied",
    "BelowMinimum",
    "NoEffectiveDiscount",
    "NoPromotionApplied",
    "TransientConflict",
]
