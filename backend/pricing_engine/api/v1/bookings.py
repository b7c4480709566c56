"""Booking endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_engine.api import deps
from pricing_engine.api.errors import http_error_for
from pricing_engine.schemas.booking import BookingCreate, BookingRead
from pricing_engine.security.permissions import CallerIdentity
from pricing_engine.services import booking_service
from pricing_engine.services.errors import PricingError

router = APIRouter()


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
async def create_booking(
    payload: BookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    caller: Annotated[CallerIdentity, Depends(deps.get_caller)],
) -> BookingRead:
    try:
        booking = await booking_service.create_booking(
            session, caller=caller, **payload.model_dump()
        )
    except PricingError as exc:
        raise http_error_for(exc) from exc
    return booking_service.build_booking_response(booking, caller)


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    caller: Annotated[CallerIdentity, Depends(deps.get_caller)],
) -> BookingRead:
    try:
        booking = await booking_service.get_booking(
            session, booking_id=booking_id, caller=caller
        )
    except PricingError as exc:
        raise http_error_for(exc) from exc
    return booking_service.build_booking_response(booking, caller)
