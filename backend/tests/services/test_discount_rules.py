"""Tests for promotion applicability rules."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Any

import pytest

from pricing_engine.models import DiscountKind, LoyaltyTier, Promotion, PropertyType
from pricing_engine.security.permissions import ANONYMOUS, AuthenticatedCaller
from pricing_engine.services.discount_rules import (
    BookingContext,
    normalize_code,
    raw_discount,
    resolve_promotion,
)
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

NOW = datetime.datetime(2027, 6, 1, 12, 0, tzinfo=datetime.UTC)
LISTING_ID = uuid.uuid4()
GUEST = AuthenticatedCaller(user_id=uuid.uuid4())


def _promotion(**overrides: Any) -> Promotion:
    values: dict[str, Any] = {
        "id": uuid.uuid4(),
        "code": "SUMMER10",
        "name": "Summer 10",
        "discount_kind": DiscountKind.PERCENTAGE,
        "discount_value": Decimal("10"),
        "max_discount": None,
        "min_booking_value": None,
        "valid_from": None,
        "valid_until": None,
        "max_uses": None,
        "max_uses_per_user": None,
        "used_count": 0,
        "listing_ids": [],
        "property_types": [],
        "allowed_membership_tiers": [],
        "user_ids": [],
        "stack_with_membership": True,
        "stack_with_promotions": False,
        "is_active": True,
    }
    values.update(overrides)
    return Promotion(**values)


def _context(**overrides: Any) -> BookingContext:
    values: dict[str, Any] = {
        "listing_id": LISTING_ID,
        "property_type": PropertyType.VILLA,
        "caller": GUEST,
        "guest_tier": None,
        "total_before_discounts": Decimal("1000000"),
    }
    values.update(overrides)
    return BookingContext(**values)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(" summer10 ", "SUMMER10"), ("abc", "ABC"), ("x" * 64, "X" * 64)],
)
def test_normalize_code_trims_and_uppercases(raw: str, expected: str) -> None:
    assert normalize_code(raw) == expected


@pytest.mark.parametrize("raw", ["", "  ab  ", "x" * 65])
def test_normalize_code_rejects_bad_length(raw: str) -> None:
    with pytest.raises(InvalidCode):
        normalize_code(raw)


def test_percentage_discount_respects_cap() -> None:
    promotion = _promotion(discount_value=Decimal("15"), max_discount=Decimal("100000"))
    adjustment = resolve_promotion(promotion, _context(), now=NOW)
    assert adjustment.amount == Decimal("100000")
    assert adjustment.rate == Decimal("15")
    assert adjustment.code == "SUMMER10"


def test_percentage_discount_rounds_half_up() -> None:
    promotion = _promotion(discount_value=Decimal("12.5"))
    assert raw_discount(promotion, Decimal("1004")) == Decimal("126")


def test_fixed_discount_clamped_to_remaining_total() -> None:
    promotion = _promotion(
        discount_kind=DiscountKind.FIXED_AMOUNT, discount_value=Decimal("950")
    )
    context = _context(
        total_before_discounts=Decimal("1000"), membership_discount=Decimal("100")
    )
    adjustment = resolve_promotion(promotion, context, now=NOW)
    assert adjustment.amount == Decimal("900")
    assert adjustment.rate is None


def test_inactive_or_missing_promotion_not_found() -> None:
    with pytest.raises(PromotionNotFound):
        resolve_promotion(None, _context(), now=NOW)
    with pytest.raises(PromotionNotFound):
        resolve_promotion(_promotion(is_active=False), _context(), now=NOW)


def test_validity_window() -> None:
    later = _promotion(valid_from=NOW + datetime.timedelta(days=1))
    with pytest.raises(NotYetValid):
        resolve_promotion(later, _context(), now=NOW)

    # Naive timestamps from storage are read as UTC.
    ended = _promotion(valid_until=datetime.datetime(2027, 5, 31, 23, 59))
    with pytest.raises(Expired):
        resolve_promotion(ended, _context(), now=NOW)


def test_global_cap_skipped_for_reapplication() -> None:
    promotion = _promotion(max_uses=5, used_count=5)
    with pytest.raises(UsageLimitReached):
        resolve_promotion(promotion, _context(), now=NOW)

    adjustment = resolve_promotion(
        promotion, _context(applied_promotion_code="SUMMER10"), now=NOW
    )
    assert adjustment.amount == Decimal("100000")


def test_zero_max_uses_means_unlimited() -> None:
    promotion = _promotion(max_uses=0, used_count=1000)
    assert resolve_promotion(promotion, _context(), now=NOW).amount > 0


def test_user_restriction() -> None:
    promotion = _promotion(user_ids=[str(uuid.uuid4())])
    with pytest.raises(LoginRequired):
        resolve_promotion(promotion, _context(caller=ANONYMOUS), now=NOW)
    with pytest.raises(NotEligible):
        resolve_promotion(promotion, _context(), now=NOW)

    allowed = _promotion(user_ids=[str(GUEST.user_id)])
    assert resolve_promotion(allowed, _context(), now=NOW).amount > 0


def test_listing_and_property_scoping() -> None:
    with pytest.raises(NotEligible):
        resolve_promotion(
            _promotion(listing_ids=[str(uuid.uuid4())]), _context(), now=NOW
        )
    with pytest.raises(NotEligible):
        resolve_promotion(_promotion(property_types=["hotel"]), _context(), now=NOW)

    scoped = _promotion(listing_ids=[str(LISTING_ID)], property_types=["villa"])
    assert resolve_promotion(scoped, _context(), now=NOW).amount > 0


def test_membership_tier_restriction() -> None:
    promotion = _promotion(allowed_membership_tiers=["gold", "platinum"])
    with pytest.raises(NotEligible):
        resolve_promotion(promotion, _context(), now=NOW)
    with pytest.raises(NotEligible):
        resolve_promotion(
            promotion, _context(guest_tier=LoyaltyTier.SILVER), now=NOW
        )
    adjustment = resolve_promotion(
        promotion, _context(guest_tier=LoyaltyTier.GOLD), now=NOW
    )
    assert adjustment.amount > 0


def test_non_stacking_promotion_conflicts_with_membership() -> None:
    promotion = _promotion(stack_with_membership=False)
    with pytest.raises(ConflictsWithMembership):
        resolve_promotion(
            promotion, _context(membership_discount=Decimal("100000")), now=NOW
        )
    assert resolve_promotion(promotion, _context(), now=NOW).amount > 0


def test_another_code_applied() -> None:
    with pytest.raises(AnotherCodeApplied):
        resolve_promotion(
            _promotion(), _context(applied_promotion_code="WINTER5"), now=NOW
        )


def test_per_user_cap_counts_other_bookings_only() -> None:
    promotion = _promotion(max_uses_per_user=1)
    with pytest.raises(UsageLimitReached):
        resolve_promotion(
            promotion, _context(caller_redemptions_elsewhere=1), now=NOW
        )
    assert resolve_promotion(promotion, _context(), now=NOW).amount > 0
    # Anonymous callers have no redemption history to cap.
    assert (
        resolve_promotion(
            promotion,
            _context(caller=ANONYMOUS, caller_redemptions_elsewhere=1),
            now=NOW,
        ).amount
        > 0
    )


def test_minimum_booking_value() -> None:
    promotion = _promotion(min_booking_value=Decimal("2000000"))
    with pytest.raises(BelowMinimum):
        resolve_promotion(promotion, _context(), now=NOW)


def test_no_effective_discount_when_membership_covers_total() -> None:
    context = _context(
        total_before_discounts=Decimal("1000"), membership_discount=Decimal("1000")
    )
    with pytest.raises(NoEffectiveDiscount):
        resolve_promotion(_promotion(), context, now=NOW)


def test_checks_run_in_order() -> None:
    # Expired and over its cap: the validity window is reported first.
    promotion = _promotion(
        valid_until=NOW - datetime.timedelta(days=1), max_uses=1, used_count=1
    )
    with pytest.raises(Expired):
        resolve_promotion(promotion, _context(), now=NOW)
