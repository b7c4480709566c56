"""Promotion code applicability checks and discount calculation."""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass
from decimal import Decimal

from pricing_engine.models.listing import PropertyType
from pricing_engine.models.membership import LoyaltyTier
from pricing_engine.models.promotion import DiscountKind, Promotion
from pricing_engine.security.permissions import (
    AnonymousCaller,
    AuthenticatedCaller,
    CallerIdentity,
)
from pricing_engine.services.adjustments import PromotionAdjustment
from pricing_engine.services.errors import (
    AnotherCodeApplied,
    BelowMinimum,
    ConflictsWithMembership,
    Expired,
    InvalidCode,
    LoginRequired,
    NoEffectiveDiscount,
    NotEligible,
    NotYetValid,
    PromotionNotFound,
    UsageLimitReached,
)
from pricing_engine.services.money import ZERO, percent_of, to_money
from pricing_engine.services.price_compositor import max_promotion_discount

MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 64


def normalize_code(code: str) -> str:
    """Trim and uppercase a promotion code, rejecting malformed input."""
    normalized = (code or "").strip().upper()
    if not MIN_CODE_LENGTH <= len(normalized) <= MAX_CODE_LENGTH:
        raise InvalidCode()
    return normalized


@dataclass(frozen=True, slots=True)
class BookingContext:
    """What the resolver needs to know about the booking and the caller."""

    listing_id: uuid.UUID
    property_type: PropertyType
    caller: CallerIdentity
    guest_tier: LoyaltyTier | None
    total_before_discounts: Decimal
    membership_discount: Decimal = ZERO
    applied_promotion_code: str | None = None
    caller_redemptions_elsewhere: int = 0


def _aware(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value


def _is_capped(limit: int | None) -> bool:
    return limit is not None and limit > 0


def raw_discount(promotion: Promotion, total: Decimal) -> Decimal:
    """Discount before clamping against what membership left over."""
    if promotion.discount_kind is DiscountKind.PERCENTAGE:
        amount = percent_of(total, promotion.discount_value)
        if promotion.max_discount is not None and promotion.max_discount > 0:
            amount = min(amount, to_money(promotion.max_discount))
        return amount
    return to_money(promotion.discount_value)


def resolve_promotion(
    promotion: Promotion | None,
    context: BookingContext,
    *,
    now: datetime.datetime | None = None,
) -> PromotionAdjustment:
    """Validate a promotion against a booking and price its discount.

    Checks run in a fixed order and the first failure raises its specific
    error. A code that is already applied to this booking is a
    re-application: it passes the global usage check because it will not
    consume another use.
    """
    now = now or datetime.datetime.now(datetime.UTC)

    if promotion is None or not promotion.is_active:
        raise PromotionNotFound()

    if promotion.valid_from is not None and _aware(promotion.valid_from) > now:
        raise NotYetValid()
    if promotion.valid_until is not None and _aware(promotion.valid_until) < now:
        raise Expired()

    reapplying = context.applied_promotion_code == promotion.code
    if (
        not reapplying
        and _is_capped(promotion.max_uses)
        and (promotion.used_count or 0) >= promotion.max_uses
    ):
        raise UsageLimitReached()

    if promotion.user_ids:
        if isinstance(context.caller, AnonymousCaller):
            raise LoginRequired()
        if str(context.caller.user_id) not in promotion.user_ids:
            raise NotEligible("Promotion code is not available for your account")

    if promotion.listing_ids and str(context.listing_id) not in promotion.listing_ids:
        raise NotEligible("Promotion code does not apply to this listing")

    if (
        promotion.property_types
        and context.property_type.value not in promotion.property_types
    ):
        raise NotEligible("Promotion code does not apply to this property type")

    if promotion.allowed_membership_tiers and (
        context.guest_tier is None
        or context.guest_tier.value not in promotion.allowed_membership_tiers
    ):
        raise NotEligible("Promotion code is reserved for higher membership tiers")

    if not promotion.stack_with_membership and context.membership_discount > ZERO:
        raise ConflictsWithMembership()

    if context.applied_promotion_code and not reapplying:
        raise AnotherCodeApplied()

    if (
        isinstance(context.caller, AuthenticatedCaller)
        and not reapplying
        and _is_capped(promotion.max_uses_per_user)
        and context.caller_redemptions_elsewhere >= promotion.max_uses_per_user
    ):
        raise UsageLimitReached("You have already used this promotion code")

    total = to_money(context.total_before_discounts)
    if promotion.min_booking_value is not None and total < promotion.min_booking_value:
        raise BelowMinimum()

    amount = min(
        raw_discount(promotion, total),
        max_promotion_discount(total, context.membership_discount),
    )
    if amount <= ZERO:
        raise NoEffectiveDiscount()

    is_percentage = promotion.discount_kind is DiscountKind.PERCENTAGE
    return PromotionAdjustment(
        code=promotion.code,
        name=promotion.name,
        amount=amount,
        discount_kind=promotion.discount_kind,
        rate=Decimal(promotion.discount_value) if is_percentage else None,
        stack_with_membership=promotion.stack_with_membership,
        stack_with_promotions=promotion.stack_with_promotions,
    )


__all__ = [
    "BookingContext",
    "normalize_code",
    "raw_discount",
    "resolve_promotion",
]
