"""Promotion request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PromotionApplyRequest(BaseModel):
    """Body for applying a promotion code to a booking."""

    code: str = Field(
        min_length=3,
        max_length=64,
        description="Promotion code; case and surrounding whitespace are ignored",
    )
