"""Tests for the dynamic price advisor."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from pricing_engine.services import dynamic_pricing_service

FRIDAY_IN_JULY = datetime.date(2027, 7, 2)
MONDAY_IN_JULY = datetime.date(2027, 7, 5)


def test_short_notice_costs_more_than_early_booking() -> None:
    checkout = FRIDAY_IN_JULY + datetime.timedelta(days=3)
    late = dynamic_pricing_service.calculate_optimal_price(
        1000, FRIDAY_IN_JULY, checkout, today=datetime.date(2027, 6, 29)
    )
    early = dynamic_pricing_service.calculate_optimal_price(
        1000, FRIDAY_IN_JULY, checkout, today=datetime.date(2027, 4, 3)
    )
    assert late.lead_time_days == 3
    assert early.lead_time_days == 90
    assert late.suggested_price == Decimal("1518")
    assert early.suggested_price == Decimal("1242")
    assert late.suggested_price > early.suggested_price
    assert late.confidence == pytest.approx(1.0)
    assert early.confidence == pytest.approx(0.8)


def test_price_range_brackets_suggestion() -> None:
    suggestion = dynamic_pricing_service.calculate_optimal_price(
        1000,
        FRIDAY_IN_JULY,
        FRIDAY_IN_JULY + datetime.timedelta(days=3),
        today=datetime.date(2027, 6, 29),
    )
    assert suggestion.min_price == Decimal("1290")
    assert suggestion.max_price == Decimal("1746")
    assert suggestion.min_price <= suggestion.suggested_price <= suggestion.max_price
    ratio = suggestion.max_price / suggestion.min_price
    assert float(ratio) == pytest.approx(1.15 / 0.85, rel=1e-3)


def test_weekday_and_low_season() -> None:
    assert dynamic_pricing_service.demand_multiplier(MONDAY_IN_JULY) == Decimal("0.95")
    assert dynamic_pricing_service.demand_multiplier(FRIDAY_IN_JULY) == Decimal("1.15")
    assert dynamic_pricing_service.seasonal_multiplier(
        datetime.date(2027, 2, 3)
    ) == Decimal("0.85")


@pytest.mark.parametrize(
    ("days", "expected"),
    [(0, "1.1"), (6, "1.1"), (7, "1.0"), (30, "1.0"), (31, "0.95"), (60, "0.95"), (61, "0.9")],
)
def test_lead_time_bands(days: int, expected: str) -> None:
    assert dynamic_pricing_service.lead_time_multiplier(days) == Decimal(expected)


@pytest.mark.parametrize(
    ("nights", "expected"), [(1, "1.0"), (6, "1.0"), (7, "0.9"), (29, "0.9"), (30, "0.8")]
)
def test_length_of_stay_bands(nights: int, expected: str) -> None:
    assert dynamic_pricing_service.length_of_stay_multiplier(nights) == Decimal(expected)


def test_forecast_one_entry_per_day() -> None:
    today = datetime.date(2027, 7, 1)
    forecast = dynamic_pricing_service.forecast_prices(1000, days=5, today=today)
    assert [day.date for day in forecast] == [
        today + datetime.timedelta(days=offset) for offset in range(5)
    ]
    # Friday 2 July 2027: weekend, July, lead time 1, single night.
    assert forecast[1].recommended_price == Decimal("1518")


def test_competitiveness_positions() -> None:
    comparables = [Decimal("150"), Decimal("200"), Decimal("250"), Decimal("300")]
    low = dynamic_pricing_service.analyze_competitiveness(100, comparables)
    high = dynamic_pricing_service.analyze_competitiveness(400, comparables)
    middle = dynamic_pricing_service.analyze_competitiveness(
        200, [100, 150, 250, 300]
    )
    assert (low.position, low.percentile) == ("low", 0)
    assert (high.position, high.percentile) == ("high", 100)
    assert (middle.position, middle.percentile) == ("competitive", 50)


def test_competitiveness_without_comparables() -> None:
    report = dynamic_pricing_service.analyze_competitiveness(100, [])
    assert report.position == "competitive"
    assert report.percentile == 50
