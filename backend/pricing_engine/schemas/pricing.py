"""Dynamic pricing schema definitions."""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PriceSuggestionRequest(BaseModel):
    """Input for a nightly price suggestion."""

    base_price: Decimal = Field(gt=Decimal("0"))
    check_in: datetime.date
    check_out: datetime.date
    listing_id: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "PriceSuggestionRequest":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class PriceRangeRead(BaseModel):
    min: Decimal
    max: Decimal


class PricingFactorsRead(BaseModel):
    demand: Decimal
    seasonal: Decimal
    lead_time: Decimal
    length_of_stay: Decimal


class PriceSuggestionRead(BaseModel):
    """Suggested price with the factors behind it."""

    listing_id: str | None = None
    suggested_price: Decimal
    price_range: PriceRangeRead
    confidence: float
    nights: int
    lead_time_days: int
    factors: PricingFactorsRead


class DailyPriceRead(BaseModel):
    date: datetime.date
    recommended_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class CompetitivenessRequest(BaseModel):
    listing_price: Decimal = Field(ge=Decimal("0"))
    comparable_prices: list[Decimal] = Field(default_factory=list)


class CompetitivenessRead(BaseModel):
    position: str
    percentile: int
    recommendation: str

    model_config = ConfigDict(from_attributes=True)
