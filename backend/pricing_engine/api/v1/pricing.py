"""Dynamic pricing advice endpoints for hosts."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from pricing_engine.api import deps
from pricing_engine.core.config import get_settings
from pricing_engine.schemas.pricing import (
    CompetitivenessRead,
    CompetitivenessRequest,
    DailyPriceRead,
    PriceSuggestionRead,
    PriceSuggestionRequest,
)
from pricing_engine.security.permissions import AuthenticatedCaller
from pricing_engine.services import dynamic_pricing_service

router = APIRouter(prefix="/pricing", tags=["pricing"])

settings = get_settings()


@router.post(
    "/suggestions",
    response_model=PriceSuggestionRead,
    summary="Suggest a nightly price",
)
async def suggest_price(
    payload: PriceSuggestionRequest,
    _caller: Annotated[AuthenticatedCaller, Depends(deps.require_authenticated_caller)],
) -> PriceSuggestionRead:
    suggestion = dynamic_pricing_service.calculate_optimal_price(
        payload.base_price,
        payload.check_in,
        payload.check_out,
        payload.listing_id,
    )
    return PriceSuggestionRead.model_validate(suggestion.to_dict())


@router.get(
    "/forecast",
    response_model=list[DailyPriceRead],
    summary="Forecast recommended nightly prices",
)
async def forecast_prices(
    _caller: Annotated[AuthenticatedCaller, Depends(deps.require_authenticated_caller)],
    base_price: Annotated[Decimal, Query(gt=Decimal("0"))],
    days: Annotated[
        int | None, Query(ge=1, le=settings.price_forecast_max_days)
    ] = None,
    listing_id: str | None = None,
) -> list[DailyPriceRead]:
    forecast = dynamic_pricing_service.forecast_prices(
        base_price,
        days=days or settings.price_forecast_days,
        listing_id=listing_id,
    )
    return [DailyPriceRead.model_validate(day) for day in forecast]


@router.post(
    "/competitiveness",
    response_model=CompetitivenessRead,
    summary="Compare a price against similar listings",
)
async def analyze_competitiveness(
    payload: CompetitivenessRequest,
    _caller: Annotated[AuthenticatedCaller, Depends(deps.require_authenticated_caller)],
) -> CompetitivenessRead:
    report = dynamic_pricing_service.analyze_competitiveness(
        payload.listing_price, payload.comparable_prices
    )
    return CompetitivenessRead.model_validate(report)
