"""Pydantic schemas for bookings and their price breakdown."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from pricing_engine.models.booking import BookingStatus, GuestType
from pricing_engine.models.promotion import DiscountKind


class MembershipSourceRead(BaseModel):
    """Plan or tier a membership discount came from."""

    kind: str
    id: str
    name: str
    slug: str | None = None


class MembershipAdjustmentRead(BaseModel):
    type: Literal["MEMBERSHIP"] = "MEMBERSHIP"
    amount: Decimal
    rate: Decimal
    applies_to_services: bool = Field(alias="appliesToServices")
    plan: MembershipSourceRead | None = None

    model_config = ConfigDict(populate_by_name=True)


class PromotionAdjustmentRead(BaseModel):
    type: Literal["PROMOTION"] = "PROMOTION"
    code: str
    name: str
    amount: Decimal
    discount_type: DiscountKind = Field(alias="discountType")
    rate: Decimal | None = None
    stack_with_membership: bool = Field(alias="stackWithMembership")
    stack_with_promotions: bool = Field(alias="stackWithPromotions")

    model_config = ConfigDict(populate_by_name=True)


AdjustmentRead = Annotated[
    MembershipAdjustmentRead | PromotionAdjustmentRead,
    Field(discriminator="type"),
]


class GuestContactRead(BaseModel):
    """Normalized contact details for the booking's guest."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None


class BookingCreate(BaseModel):
    """Payload for creating a booking."""

    listing_id: uuid.UUID
    check_in: date
    check_out: date
    additional_services_total: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    contact_name: str | None = Field(default=None, max_length=240)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(default=None, max_length=32)


class BookingRead(BaseModel):
    """Serialized booking with its price breakdown."""

    id: uuid.UUID
    listing_id: uuid.UUID
    host_id: uuid.UUID
    guest_id: uuid.UUID | None = None
    guest_type: GuestType
    status: BookingStatus
    check_in: date
    check_out: date
    nights: int
    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    additional_services_total: Decimal
    membership_discount: Decimal
    promotion_discount: Decimal
    discount: Decimal
    total_price: Decimal
    applied_adjustments: list[AdjustmentRead] = Field(default_factory=list)
    guest_contact: GuestContactRead
    can_review: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
