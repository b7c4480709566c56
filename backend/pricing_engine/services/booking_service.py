"""Booking creation, lookup and serialization helpers."""
from __future__ import annotations

import datetime
import re
import uuid
from decimal import Decimal

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pricing_engine.models.booking import Booking, BookingStatus, GuestType
from pricing_engine.models.listing import Listing
from pricing_engine.models.user import User
from pricing_engine.schemas.booking import BookingRead, GuestContactRead
from pricing_engine.security.permissions import (
    AuthenticatedCaller,
    CallerIdentity,
    require_booking_access,
)
from pricing_engine.services.adjustments import parse_adjustments
from pricing_engine.services.errors import (
    BookingNotFound,
    InvalidStay,
    ListingNotFound,
)
from pricing_engine.services.membership_service import (
    membership_snapshot,
    resolve_membership_discount,
)
from pricing_engine.services.money import ZERO, percent_of, to_money
from pricing_engine.services.price_compositor import compose_price

DEFAULT_SERVICE_FEE_RATE = Decimal("10")

_PHONE_JUNK = re.compile(r"[^\d+]")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def service_fee_for(
    listing_fee: Decimal | None,
    *,
    accommodation_subtotal: Decimal,
    services_subtotal: Decimal = ZERO,
) -> Decimal:
    """Listing's own fee when set, otherwise 10% of stay plus add-ons."""
    if listing_fee is not None and listing_fee > 0:
        return to_money(listing_fee)
    return percent_of(accommodation_subtotal, DEFAULT_SERVICE_FEE_RATE) + percent_of(
        services_subtotal, DEFAULT_SERVICE_FEE_RATE
    )


def normalize_phone(phone: str | None) -> str | None:
    """Keep digits and a single leading ``+``."""
    if not phone:
        return None
    cleaned = _PHONE_JUNK.sub("", phone.strip())
    digits = cleaned.replace("+", "")
    if not digits:
        return None
    return f"+{digits}" if cleaned.startswith("+") else digits


def booking_query(
    booking_id: uuid.UUID, *, for_update: bool = False
) -> Select[tuple[Booking]]:
    """Fresh read of one booking with its listing and guest membership loaded."""
    stmt = (
        select(Booking)
        .options(
            selectinload(Booking.listing),
            selectinload(Booking.guest).selectinload(User.membership_plan),
        )
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update(of=Booking)
    return stmt


async def _load_guest(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await session.execute(
        select(User)
        .options(selectinload(User.membership_plan))
        .where(User.id == user_id)
    )
    return result.scalar_one_or_none()


async def create_booking(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    check_in: datetime.date,
    check_out: datetime.date,
    caller: CallerIdentity,
    additional_services_total: Decimal = ZERO,
    contact_name: str | None = None,
    contact_email: str | None = None,
    contact_phone: str | None = None,
    now: datetime.datetime | None = None,
) -> Booking:
    """Price and persist a new pending booking.

    An authenticated caller books as a registered guest and gets their
    membership discount; anonymous callers create walk-in bookings.
    """
    now = now or _utcnow()
    nights = (check_out - check_in).days
    if nights < 1:
        raise InvalidStay()

    listing = await session.get(Listing, listing_id)
    if listing is None:
        raise ListingNotFound()

    guest = None
    if isinstance(caller, AuthenticatedCaller):
        guest = await _load_guest(session, caller.user_id)

    accommodation = to_money(listing.base_price) * nights
    services = to_money(additional_services_total)
    cleaning_fee = to_money(listing.cleaning_fee)
    service_fee = service_fee_for(
        listing.service_fee,
        accommodation_subtotal=accommodation,
        services_subtotal=services,
    )
    total = accommodation + cleaning_fee + service_fee + services

    membership = resolve_membership_discount(
        membership_snapshot(guest),
        accommodation_subtotal=accommodation,
        services_subtotal=services,
        now=now,
    )
    composition = compose_price(total, membership=membership.to_adjustment())

    booking = Booking(
        listing_id=listing.id,
        host_id=listing.host_id,
        guest_id=guest.id if guest else None,
        guest_type=GuestType.REGISTERED if guest else GuestType.WALK_IN,
        contact_name=contact_name or (guest.name if guest else None),
        contact_email=contact_email or (guest.email if guest else None),
        contact_phone=contact_phone or (guest.phone_number if guest else None),
        status=BookingStatus.PENDING,
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        base_price=accommodation,
        cleaning_fee=cleaning_fee,
        service_fee=service_fee,
        additional_services_total=services,
    )
    composition.apply_to(booking)
    session.add(booking)
    await session.commit()
    return await get_booking(session, booking_id=booking.id, caller=caller)


async def get_booking(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    caller: CallerIdentity,
) -> Booking:
    result = await session.execute(booking_query(booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound()
    require_booking_access(booking, caller)
    return booking


def can_review(
    booking: Booking, caller: CallerIdentity, today: datetime.date
) -> bool:
    return (
        isinstance(caller, AuthenticatedCaller)
        and booking.guest_id is not None
        and caller.user_id == booking.guest_id
        and booking.status == BookingStatus.COMPLETED
        and booking.check_out <= today
    )


def build_booking_response(
    booking: Booking,
    caller: CallerIdentity,
    *,
    now: datetime.datetime | None = None,
) -> BookingRead:
    """Serialize a booking for the caller."""
    now = now or _utcnow()
    guest = booking.guest
    contact = GuestContactRead(
        name=booking.contact_name or (guest.name if guest else None),
        email=booking.contact_email or (guest.email if guest else None),
        phone=normalize_phone(
            booking.contact_phone or (guest.phone_number if guest else None)
        ),
    )
    return BookingRead(
        id=booking.id,
        listing_id=booking.listing_id,
        host_id=booking.host_id,
        guest_id=booking.guest_id,
        guest_type=booking.guest_type,
        status=booking.status,
        check_in=booking.check_in,
        check_out=booking.check_out,
        nights=booking.nights,
        base_price=booking.base_price,
        cleaning_fee=booking.cleaning_fee,
        service_fee=booking.service_fee,
        additional_services_total=booking.additional_services_total,
        membership_discount=booking.membership_discount,
        promotion_discount=booking.promotion_discount,
        discount=booking.discount,
        total_price=booking.total_price,
        applied_adjustments=[
            adjustment.to_dict()
            for adjustment in parse_adjustments(booking.applied_adjustments)
        ],
        guest_contact=contact,
        can_review=can_review(booking, caller, now.date()),
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


__all__ = [
    "build_booking_response",
    "can_review",
    "create_booking",
    "get_booking",
    "normalize_phone",
    "service_fee_for",
]
