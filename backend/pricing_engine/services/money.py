"""Money rounding helpers shared by the pricing services."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Final

MONEY_QUANTUM: Final = Decimal("1")
ZERO: Final = Decimal("0")


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """Round to whole currency units, half away from zero."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal | int | float | str) -> Decimal:
    """Return ``round(amount * rate / 100)``."""
    return to_money(Decimal(amount) * Decimal(str(rate)) / Decimal("100"))


def money_str(value: Decimal) -> str:
    return f"{to_money(value):f}"
