"""Rule-based nightly price suggestions for hosts."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Final, Sequence

from pricing_engine.services.money import money_str, to_money

WEEKEND_DAYS: Final = frozenset({4, 5, 6})  # Friday, Saturday, Sunday

SEASONAL_MULTIPLIERS: Final[dict[int, Decimal]] = {
    1: Decimal("1.2"),
    2: Decimal("0.85"),
    3: Decimal("0.95"),
    4: Decimal("1.0"),
    5: Decimal("1.05"),
    6: Decimal("1.15"),
    7: Decimal("1.2"),
    8: Decimal("1.15"),
    9: Decimal("1.0"),
    10: Decimal("1.0"),
    11: Decimal("0.95"),
    12: Decimal("1.15"),
}

RANGE_LOWER: Final = Decimal("0.85")
RANGE_UPPER: Final = Decimal("1.15")
BASE_CONFIDENCE: Final = Decimal("0.7")


@dataclass(frozen=True, slots=True)
class PricingFactors:
    demand: Decimal
    seasonal: Decimal
    lead_time: Decimal
    length_of_stay: Decimal

    @property
    def combined(self) -> Decimal:
        return self.demand * self.seasonal * self.lead_time * self.length_of_stay


@dataclass(frozen=True, slots=True)
class PriceSuggestion:
    """Suggested nightly price and how it was reached."""

    listing_id: str | None
    suggested_price: Decimal
    min_price: Decimal
    max_price: Decimal
    confidence: float
    nights: int
    lead_time_days: int
    factors: PricingFactors

    def to_dict(self) -> dict[str, Any]:
        return {
            "listing_id": self.listing_id,
            "suggested_price": money_str(self.suggested_price),
            "price_range": {
                "min": money_str(self.min_price),
                "max": money_str(self.max_price),
            },
            "confidence": self.confidence,
            "nights": self.nights,
            "lead_time_days": self.lead_time_days,
            "factors": {
                "demand": str(self.factors.demand),
                "seasonal": str(self.factors.seasonal),
                "lead_time": str(self.factors.lead_time),
                "length_of_stay": str(self.factors.length_of_stay),
            },
        }


@dataclass(frozen=True, slots=True)
class DailyPrice:
    date: datetime.date
    recommended_price: Decimal


@dataclass(frozen=True, slots=True)
class CompetitivenessReport:
    position: str
    percentile: int
    recommendation: str


def _as_date(value: datetime.date) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def demand_multiplier(check_in: datetime.date) -> Decimal:
    return Decimal("1.15") if check_in.weekday() in WEEKEND_DAYS else Decimal("0.95")


def seasonal_multiplier(check_in: datetime.date) -> Decimal:
    return SEASONAL_MULTIPLIERS.get(check_in.month, Decimal("1.0"))


def lead_time_multiplier(lead_time_days: int) -> Decimal:
    if lead_time_days < 7:
        return Decimal("1.1")
    if lead_time_days <= 30:
        return Decimal("1.0")
    if lead_time_days <= 60:
        return Decimal("0.95")
    return Decimal("0.9")


def length_of_stay_multiplier(nights: int) -> Decimal:
    if nights >= 30:
        return Decimal("0.8")
    if nights >= 7:
        return Decimal("0.9")
    return Decimal("1.0")


def confidence_score(lead_time_days: int, nights: int) -> float:
    """Nearer dates and typical stay lengths give more confident suggestions."""
    confidence = BASE_CONFIDENCE
    if lead_time_days < 30:
        confidence += Decimal("0.2")
    elif lead_time_days < 60:
        confidence += Decimal("0.1")
    if 2 <= nights <= 7:
        confidence += Decimal("0.1")
    return float(min(confidence, Decimal("1.0")))


def calculate_optimal_price(
    base_price: Decimal | int | str,
    check_in: datetime.date,
    check_out: datetime.date,
    listing_id: str | None = None,
    *,
    today: datetime.date | None = None,
) -> PriceSuggestion:
    """Suggest a nightly price from calendar signals.

    ``listing_id`` is carried through for per-listing tuning; the formula does
    not use it.
    """
    check_in = _as_date(check_in)
    check_out = _as_date(check_out)
    today = _as_date(today or datetime.datetime.now(datetime.UTC).date())

    nights = (check_out - check_in).days
    lead_time_days = (check_in - today).days

    factors = PricingFactors(
        demand=demand_multiplier(check_in),
        seasonal=seasonal_multiplier(check_in),
        lead_time=lead_time_multiplier(lead_time_days),
        length_of_stay=length_of_stay_multiplier(nights),
    )
    suggested = to_money(Decimal(str(base_price)) * factors.combined)

    return PriceSuggestion(
        listing_id=listing_id,
        suggested_price=suggested,
        min_price=to_money(suggested * RANGE_LOWER),
        max_price=to_money(suggested * RANGE_UPPER),
        confidence=confidence_score(lead_time_days, nights),
        nights=nights,
        lead_time_days=lead_time_days,
        factors=factors,
    )


def forecast_prices(
    base_price: Decimal | int | str,
    *,
    days: int = 90,
    listing_id: str | None = None,
    today: datetime.date | None = None,
) -> list[DailyPrice]:
    """Single-night suggestion for each of the next ``days`` dates."""
    start = _as_date(today or datetime.datetime.now(datetime.UTC).date())
    forecast: list[DailyPrice] = []
    for offset in range(days):
        night = start + datetime.timedelta(days=offset)
        suggestion = calculate_optimal_price(
            base_price,
            night,
            night + datetime.timedelta(days=1),
            listing_id,
            today=start,
        )
        forecast.append(DailyPrice(date=night, recommended_price=suggestion.suggested_price))
    return forecast


def analyze_competitiveness(
    listing_price: Decimal | int | str,
    comparable_prices: Sequence[Decimal | int | str],
) -> CompetitivenessReport:
    """Place a listing's price among comparable listings."""
    if not comparable_prices:
        return CompetitivenessReport(
            position="competitive",
            percentile=50,
            recommendation="Not enough data to compare",
        )

    price = Decimal(str(listing_price))
    lower = sum(1 for other in comparable_prices if Decimal(str(other)) < price)
    percentile = Decimal(lower) * 100 / Decimal(len(comparable_prices))

    if percentile < 25:
        position = "low"
        recommendation = (
            "Your price is lower than most similar listings. "
            "Consider increasing it to maximize revenue."
        )
    elif percentile > 75:
        position = "high"
        recommendation = (
            "Your price is higher than most similar listings. "
            "This may reduce booking rates."
        )
    else:
        position = "competitive"
        recommendation = "Your price is competitively positioned in the market."

    return CompetitivenessReport(
        position=position,
        percentile=int(to_money(percentile)),
        recommendation=recommendation,
    )


__all__ = [
    "CompetitivenessReport",
    "DailyPrice",
    "PriceSuggestion",
    "PricingFactors",
    "analyze_competitiveness",
    "calculate_optimal_price",
    "confidence_score",
    "demand_multiplier",
    "forecast_prices",
    "lead_time_multiplier",
    "length_of_stay_multiplier",
    "seasonal_multiplier",
]
