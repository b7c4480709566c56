"""Caller identity variants and the booking access predicate."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TypeAlias

from pricing_engine.models.booking import Booking
from pricing_engine.models.user import UserRole
from pricing_engine.services.errors import Forbidden, Unauthorized


@dataclass(frozen=True, slots=True)
class AuthenticatedCaller:
    """Caller resolved from a valid bearer token."""

    user_id: uuid.UUID
    role: UserRole = UserRole.GUEST

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True, slots=True)
class AnonymousCaller:
    """Caller without a session (walk-in checkout)."""


CallerIdentity: TypeAlias = AuthenticatedCaller | AnonymousCaller

ANONYMOUS = AnonymousCaller()


def can_access_booking(booking: Booking, caller: CallerIdentity) -> bool:
    """Return whether the caller may read or update the booking."""
    if booking.guest_id is None:
        return True
    if isinstance(caller, AnonymousCaller):
        return False
    return (
        caller.is_admin
        or caller.user_id == booking.guest_id
        or caller.user_id == booking.host_id
    )


def require_booking_access(booking: Booking, caller: CallerIdentity) -> None:
    """Raise Unauthorized/Forbidden when the caller may not touch the booking."""
    if can_access_booking(booking, caller):
        return
    if isinstance(caller, AnonymousCaller):
        raise Unauthorized()
    raise Forbidden()


__all__ = [
    "ANONYMOUS",
    "AnonymousCaller",
    "AuthenticatedCaller",
    "CallerIdentity",
    "can_access_booking",
    "require_booking_access",
]
