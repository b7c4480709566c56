"""Translate pricing domain errors into HTTP errors."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from pricing_engine.services.errors import (
    BookingNotFound,
    Forbidden,
    ListingNotFound,
    PricingError,
    PromotionNotFound,
    TransientConflict,
    Unauthorized,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[PricingError], int] = {
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    ListingNotFound: status.HTTP_404_NOT_FOUND,
    PromotionNotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    TransientConflict: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error_for(exc: PricingError) -> HTTPException:
    """Map a domain error to its HTTP status; anything else is a 400."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error("Request failed: %s", exc.code)
        return HTTPException(status_code=status_code, detail="Internal server error")
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=status_code, detail=exc.message, headers=headers)


__all__ = ["http_error_for"]
