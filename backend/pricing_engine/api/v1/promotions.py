"""Promotion code endpoints for bookings."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends

from pricing_engine.api import deps
from pricing_engine.api.errors import http_error_for
from pricing_engine.core.config import get_settings
from pricing_engine.schemas.booking import BookingRead
from pricing_engine.schemas.promotion import PromotionApplyRequest
from pricing_engine.security.permissions import CallerIdentity
from pricing_engine.services.booking_service import build_booking_response
from pricing_engine.services.errors import PricingError
from pricing_engine.services.redemption_ledger import RedemptionLedger

router = APIRouter()

settings = get_settings()

_PROMOTION_RATE_DEP = deps.rate_dependency(
    deps.parse_rate(settings.rate_limit_promotions, fallback=(20, 60))
)


@router.post(
    "/{booking_id}/promotions",
    response_model=BookingRead,
    summary="Apply a promotion code",
    dependencies=[_PROMOTION_RATE_DEP],
)
async def apply_promotion(
    booking_id: uuid.UUID,
    payload: PromotionApplyRequest,
    caller: Annotated[CallerIdentity, Depends(deps.get_caller)],
    ledger: Annotated[RedemptionLedger, Depends(deps.get_redemption_ledger)],
) -> BookingRead:
    """Apply a code and return the repriced booking."""
    try:
        booking = await ledger.apply_promotion(
            booking_id=booking_id, code=payload.code, caller=caller
        )
    except PricingError as exc:
        raise http_error_for(exc) from exc
    return build_booking_response(booking, caller)


@router.delete(
    "/{booking_id}/promotions",
    response_model=BookingRead,
    summary="Remove the applied promotion code",
    dependencies=[_PROMOTION_RATE_DEP],
)
async def remove_promotion(
    booking_id: uuid.UUID,
    caller: Annotated[CallerIdentity, Depends(deps.get_caller)],
    ledger: Annotated[RedemptionLedger, Depends(deps.get_redemption_ledger)],
) -> BookingRead:
    """Remove the code and release its redemption."""
    try:
        booking = await ledger.remove_promotion(booking_id=booking_id, caller=caller)
    except PricingError as exc:
        raise http_error_for(exc) from exc
    return build_booking_response(booking, caller)
