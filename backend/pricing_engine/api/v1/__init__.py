"""Versioned API router."""

from fastapi import APIRouter

from . import bookings, health, pricing, promotions

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(promotions.router, prefix="/bookings", tags=["promotions"])
router.include_router(pricing.router)

__all__ = ["router"]
