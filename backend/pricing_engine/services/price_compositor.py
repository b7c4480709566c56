"""Combine pre-discount totals with membership and promotion discounts."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from pricing_engine.models.booking import Booking
from pricing_engine.services.adjustments import (
    Adjustment,
    MembershipAdjustment,
    PromotionAdjustment,
    dump_adjustments,
)
from pricing_engine.services.money import ZERO, to_money


@dataclass(frozen=True, slots=True)
class PriceComposition:
    """Booking price fields produced by a recomposition."""

    total_before_discounts: Decimal
    membership_discount: Decimal
    promotion_discount: Decimal
    discount: Decimal
    total_price: Decimal
    adjustments: tuple[Adjustment, ...]

    def apply_to(self, booking: Booking) -> None:
        """Write the composed fields onto the booking."""
        booking.membership_discount = self.membership_discount
        booking.promotion_discount = self.promotion_discount
        booking.discount = self.discount
        booking.total_price = self.total_price
        booking.applied_adjustments = dump_adjustments(self.adjustments)


def total_before_discounts(
    total_price: Decimal | None, discount: Decimal | None
) -> Decimal:
    """Recover the pre-discount total from a stored booking."""
    return to_money(total_price) + to_money(discount)


def max_promotion_discount(total: Decimal, membership_discount: Decimal) -> Decimal:
    """Ceiling for a promotion discount once membership is taken."""
    return max(to_money(total) - to_money(membership_discount), ZERO)


def compose_price(
    total: Decimal,
    *,
    membership: MembershipAdjustment | None = None,
    promotion: PromotionAdjustment | None = None,
) -> PriceComposition:
    """Compose a booking's discounted total.

    Membership applies first and is capped at the total; the promotion is
    capped at whatever membership left. The adjustment list is rebuilt from
    scratch in display order (membership, then promotion), omitting entries
    that ended up worth nothing.
    """
    total = max(to_money(total), ZERO)

    membership_amount = ZERO
    if membership is not None:
        membership_amount = min(max(to_money(membership.amount), ZERO), total)
        membership = replace(membership, amount=membership_amount)

    promotion_amount = ZERO
    if promotion is not None:
        ceiling = max_promotion_discount(total, membership_amount)
        promotion_amount = min(max(to_money(promotion.amount), ZERO), ceiling)
        promotion = replace(promotion, amount=promotion_amount)

    adjustments: list[Adjustment] = []
    if membership is not None and membership_amount > ZERO:
        adjustments.append(membership)
    if promotion is not None and promotion_amount > ZERO:
        adjustments.append(promotion)

    discount = membership_amount + promotion_amount
    return PriceComposition(
        total_before_discounts=total,
        membership_discount=membership_amount,
        promotion_discount=promotion_amount,
        discount=discount,
        total_price=max(ZERO, total - discount),
        adjustments=tuple(adjustments),
    )


__all__ = [
    "PriceComposition",
    "compose_price",
    "max_promotion_discount",
    "total_before_discounts",
]
