"""Typed price adjustments stored on a booking.

A booking carries at most one membership adjustment followed by at most one
promotion adjustment. The JSON column holds their ``to_dict`` form, tagged by
``type``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Iterable, Mapping, TypeAlias

from pricing_engine.models.promotion import DiscountKind
from pricing_engine.services.money import ZERO, money_str, to_money

MEMBERSHIP = "MEMBERSHIP"
PROMOTION = "PROMOTION"


def _rate_str(rate: Decimal) -> str:
    normalized = Decimal(rate).normalize()
    return f"{normalized:f}"


def _decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class MembershipSource:
    """Plan or loyalty tier a membership discount came from."""

    kind: str
    identifier: str
    name: str
    slug: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "id": self.identifier,
            "name": self.name,
            "slug": self.slug,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MembershipSource | None:
        identifier = data.get("id")
        name = data.get("name")
        if not isinstance(identifier, str) or not isinstance(name, str):
            return None
        kind = data.get("kind")
        slug = data.get("slug")
        return cls(
            kind=kind if isinstance(kind, str) else "plan",
            identifier=identifier,
            name=name,
            slug=slug if isinstance(slug, str) else None,
        )


@dataclass(frozen=True, slots=True)
class MembershipAdjustment:
    """Discount granted by the guest's membership plan or loyalty tier."""

    type: ClassVar[str] = MEMBERSHIP

    amount: Decimal
    rate: Decimal = ZERO
    applies_to_services: bool = False
    source: MembershipSource | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "amount": money_str(self.amount),
            "rate": _rate_str(self.rate),
            "appliesToServices": self.applies_to_services,
            "plan": self.source.to_dict() if self.source else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MembershipAdjustment | None:
        amount = _decimal(data.get("amount"))
        if amount is None:
            return None
        plan = data.get("plan")
        return cls(
            amount=to_money(amount),
            rate=_decimal(data.get("rate")) or ZERO,
            applies_to_services=bool(data.get("appliesToServices", False)),
            source=MembershipSource.from_dict(plan) if isinstance(plan, Mapping) else None,
        )


@dataclass(frozen=True, slots=True)
class PromotionAdjustment:
    """Discount granted by a promotion code."""

    type: ClassVar[str] = PROMOTION

    code: str
    name: str
    amount: Decimal
    discount_kind: DiscountKind
    rate: Decimal | None = None
    stack_with_membership: bool = True
    stack_with_promotions: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "code": self.code,
            "name": self.name,
            "amount": money_str(self.amount),
            "discountType": self.discount_kind.value,
            "rate": _rate_str(self.rate) if self.rate is not None else None,
            "stackWithMembership": self.stack_with_membership,
            "stackWithPromotions": self.stack_with_promotions,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromotionAdjustment | None:
        code = data.get("code")
        amount = _decimal(data.get("amount"))
        if not isinstance(code, str) or amount is None:
            return None
        try:
            kind = DiscountKind(data.get("discountType"))
        except ValueError:
            kind = DiscountKind.FIXED_AMOUNT
        name = data.get("name")
        return cls(
            code=code,
            name=name if isinstance(name, str) else code,
            amount=to_money(amount),
            discount_kind=kind,
            rate=_decimal(data.get("rate")),
            stack_with_membership=bool(data.get("stackWithMembership", True)),
            stack_with_promotions=bool(data.get("stackWithPromotions", False)),
        )


Adjustment: TypeAlias = MembershipAdjustment | PromotionAdjustment

_PARSERS = {
    MEMBERSHIP: MembershipAdjustment.from_dict,
    PROMOTION: PromotionAdjustment.from_dict,
}


def parse_adjustments(raw: Any) -> tuple[Adjustment, ...]:
    """Parse the stored adjustment list, dropping malformed entries."""
    if not isinstance(raw, list):
        return ()
    parsed: list[Adjustment] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        parser = _PARSERS.get(entry.get("type"))
        if parser is None:
            continue
        adjustment = parser(entry)
        if adjustment is not None:
            parsed.append(adjustment)
    return tuple(parsed)


def dump_adjustments(adjustments: Iterable[Adjustment]) -> list[dict[str, Any]]:
    return [adjustment.to_dict() for adjustment in adjustments]


def find_membership(adjustments: Iterable[Adjustment]) -> MembershipAdjustment | None:
    for adjustment in adjustments:
        if isinstance(adjustment, MembershipAdjustment):
            return adjustment
    return None


def find_promotion(adjustments: Iterable[Adjustment]) -> PromotionAdjustment | None:
    for adjustment in adjustments:
        if isinstance(adjustment, PromotionAdjustment):
            return adjustment
    return None


def carried_membership(
    adjustments: Iterable[Adjustment], membership_discount: Decimal | None
) -> MembershipAdjustment | None:
    """Return the membership entry to keep, rebuilding it from the amount if lost."""
    entry = find_membership(adjustments)
    if entry is not None:
        return entry
    amount = to_money(membership_discount)
    if amount > ZERO:
        return MembershipAdjustment(amount=amount)
    return None


__all__ = [
    "Adjustment",
    "MEMBERSHIP",
    "PROMOTION",
    "MembershipAdjustment",
    "MembershipSource",
    "PromotionAdjustment",
    "carried_membership",
    "dump_adjustments",
    "find_membership",
    "find_promotion",
    "parse_adjustments",
]
