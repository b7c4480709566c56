"""Membership and loyalty discount resolution."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from pricing_engine.models.membership import LoyaltyTier, MembershipStatus
from pricing_engine.models.user import User
from pricing_engine.services.adjustments import MembershipAdjustment, MembershipSource
from pricing_engine.services.money import ZERO, percent_of, to_money


@dataclass(frozen=True, slots=True)
class TierBenefit:
    rate: Decimal
    applies_to_services: bool
    label: str


LOYALTY_TIER_BENEFITS: Final[dict[LoyaltyTier, TierBenefit]] = {
    LoyaltyTier.BRONZE: TierBenefit(Decimal("0"), False, "Bronze"),
    LoyaltyTier.SILVER: TierBenefit(Decimal("3"), False, "Silver"),
    LoyaltyTier.GOLD: TierBenefit(Decimal("5"), False, "Gold"),
    LoyaltyTier.PLATINUM: TierBenefit(Decimal("8"), True, "Platinum"),
    LoyaltyTier.DIAMOND: TierBenefit(Decimal("10"), True, "Diamond"),
}


@dataclass(frozen=True, slots=True)
class PlanSnapshot:
    """Membership plan fields relevant to pricing."""

    id: str
    slug: str
    name: str
    discount_rate: Decimal
    applies_to_services: bool


@dataclass(frozen=True, slots=True)
class MembershipSnapshot:
    """A guest's membership standing at booking time."""

    status: MembershipStatus = MembershipStatus.INACTIVE
    expires_at: datetime.datetime | None = None
    plan: PlanSnapshot | None = None
    loyalty_tier: LoyaltyTier | None = None

    def is_active(self, now: datetime.datetime) -> bool:
        if self.status is not MembershipStatus.ACTIVE:
            return False
        if self.expires_at is None:
            return True
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=datetime.UTC)
        return expires_at >= now


NO_MEMBERSHIP = MembershipSnapshot()


@dataclass(frozen=True, slots=True)
class MembershipDiscount:
    """Outcome of membership resolution."""

    amount: Decimal
    rate: Decimal
    applies_to_services: bool
    source: MembershipSource | None

    def to_adjustment(self) -> MembershipAdjustment | None:
        if self.amount <= ZERO:
            return None
        return MembershipAdjustment(
            amount=self.amount,
            rate=self.rate,
            applies_to_services=self.applies_to_services,
            source=self.source,
        )


NO_DISCOUNT = MembershipDiscount(
    amount=ZERO, rate=ZERO, applies_to_services=False, source=None
)


def membership_snapshot(user: User | None) -> MembershipSnapshot:
    """Capture the membership fields of a user (loaded with its plan)."""
    if user is None:
        return NO_MEMBERSHIP
    plan = None
    if user.membership_plan is not None and user.membership_plan.is_active:
        plan = PlanSnapshot(
            id=str(user.membership_plan.id),
            slug=user.membership_plan.slug,
            name=user.membership_plan.name,
            discount_rate=Decimal(user.membership_plan.booking_discount_rate),
            applies_to_services=user.membership_plan.apply_discount_to_services,
        )
    return MembershipSnapshot(
        status=user.membership_status,
        expires_at=user.membership_expires_at,
        plan=plan,
        loyalty_tier=user.loyalty_tier,
    )


def resolve_membership_discount(
    snapshot: MembershipSnapshot,
    *,
    accommodation_subtotal: Decimal,
    services_subtotal: Decimal = ZERO,
    now: datetime.datetime | None = None,
) -> MembershipDiscount:
    """Compute the membership discount for a booking subtotal.

    An active paid plan wins; otherwise the loyalty tier table applies. The
    discount never exceeds the discountable base.
    """
    now = now or datetime.datetime.now(datetime.UTC)

    if snapshot.plan is not None and snapshot.is_active(now):
        rate = snapshot.plan.discount_rate
        applies_to_services = snapshot.plan.applies_to_services
        source = MembershipSource(
            kind="plan",
            identifier=snapshot.plan.id,
            name=snapshot.plan.name,
            slug=snapshot.plan.slug,
        )
    elif snapshot.loyalty_tier is not None:
        benefit = LOYALTY_TIER_BENEFITS.get(snapshot.loyalty_tier)
        if benefit is None:
            return NO_DISCOUNT
        rate = benefit.rate
        applies_to_services = benefit.applies_to_services
        source = MembershipSource(
            kind="tier",
            identifier=snapshot.loyalty_tier.value,
            name=benefit.label,
        )
    else:
        return NO_DISCOUNT

    if rate <= ZERO:
        return NO_DISCOUNT

    base = to_money(accommodation_subtotal)
    if applies_to_services:
        base += to_money(services_subtotal)
    amount = min(percent_of(base, rate), base)
    return MembershipDiscount(
        amount=max(amount, ZERO),
        rate=rate,
        applies_to_services=applies_to_services,
        source=source,
    )


__all__ = [
    "LOYALTY_TIER_BENEFITS",
    "MembershipDiscount",
    "MembershipSnapshot",
    "PlanSnapshot",
    "TierBenefit",
    "membership_snapshot",
    "resolve_membership_discount",
]
