"""Transactional apply/remove of promotion codes on bookings.

Each operation runs as a single transaction: booking price update, the
caller's redemption row and the promotion usage counter commit together or
not at all. The booking row is locked first, then the promotion row, in the
same order on apply and remove. The counter is bumped with a conditional
UPDATE, so concurrent redemptions can never push ``used_count`` past
``max_uses``.

A user keeps one redemption row per promotion; ``booking_ids`` lists every
booking that currently carries the code through it, and its length is what
the per-user cap is checked against.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Callable
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricing_engine.db.retry import RetryPolicy, is_transient_conflict
from pricing_engine.models import (
    Booking,
    Promotion,
    PromotionRedemption,
    RedemptionStatus,
)
from pricing_engine.security.permissions import (
    AuthenticatedCaller,
    CallerIdentity,
    require_booking_access,
)
from pricing_engine.services.adjustments import (
    carried_membership,
    find_promotion,
    parse_adjustments,
)
from pricing_engine.services.booking_service import booking_query
from pricing_engine.services.discount_rules import (
    BookingContext,
    normalize_code,
    resolve_promotion,
)
from pricing_engine.services.errors import (
    BookingNotFound,
    NoEffectiveDiscount,
    NoPromotionApplied,
    PromotionNotFound,
    TransientConflict,
    UsageLimitReached,
)
from pricing_engine.services.money import ZERO
from pricing_engine.services.price_compositor import (
    compose_price,
    total_before_discounts,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class RedemptionLedger:
    """Owns every write to promotion counters and redemption rows."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        retry_policy: RetryPolicy | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock

    async def apply_promotion(
        self,
        *,
        booking_id: uuid.UUID,
        code: str,
        caller: CallerIdentity,
    ) -> Booking:
        """Apply ``code`` to the booking, consuming one use for identified callers."""
        normalized = normalize_code(code)

        async def _attempt() -> Booking:
            async with self._sessionmaker() as session:
                async with session.begin():
                    return await self._apply_once(
                        session, booking_id=booking_id, code=normalized, caller=caller
                    )

        booking = await self._run(_attempt)
        logger.info("Promotion %s applied to booking %s", normalized, booking_id)
        return booking

    async def remove_promotion(
        self,
        *,
        booking_id: uuid.UUID,
        caller: CallerIdentity,
    ) -> Booking:
        """Remove the applied promotion and release its redemption."""

        async def _attempt() -> Booking:
            async with self._sessionmaker() as session:
                async with session.begin():
                    return await self._remove_once(
                        session, booking_id=booking_id, caller=caller
                    )

        booking = await self._run(_attempt)
        logger.info("Promotion removed from booking %s", booking_id)
        return booking

    async def _run(self, attempt: Callable[[], Any]) -> Booking:
        try:
            return await self._retry_policy.run(attempt)
        except SQLAlchemyError as exc:
            if is_transient_conflict(exc):
                logger.error(
                    "Redemption transaction still conflicting after %s attempts",
                    self._retry_policy.max_attempts,
                )
                raise TransientConflict() from exc
            raise

    async def _apply_once(
        self,
        session: AsyncSession,
        *,
        booking_id: uuid.UUID,
        code: str,
        caller: CallerIdentity,
    ) -> Booking:
        now = self._clock()
        booking = await _load_booking(session, booking_id)
        require_booking_access(booking, caller)

        promotion = await _lock_promotion(session, code)
        if promotion is None:
            raise PromotionNotFound()
        adjustments = parse_adjustments(booking.applied_adjustments)
        applied = find_promotion(adjustments)
        membership = carried_membership(adjustments, booking.membership_discount)

        redemption = None
        redemptions_elsewhere = 0
        if isinstance(caller, AuthenticatedCaller):
            redemption = await _caller_redemption(
                session, promotion_id=promotion.id, user_id=caller.user_id
            )
            if redemption is not None:
                redemptions_elsewhere = sum(
                    1
                    for carried in _carried_bookings(redemption)
                    if carried != str(booking.id)
                )

        total = total_before_discounts(booking.total_price, booking.discount)
        context = BookingContext(
            listing_id=booking.listing_id,
            property_type=booking.listing.property_type,
            caller=caller,
            guest_tier=booking.guest.loyalty_tier if booking.guest else None,
            total_before_discounts=total,
            membership_discount=membership.amount if membership else ZERO,
            applied_promotion_code=applied.code if applied else None,
            caller_redemptions_elsewhere=redemptions_elsewhere,
        )
        adjustment = resolve_promotion(promotion, context, now=now)

        composition = compose_price(total, membership=membership, promotion=adjustment)
        if composition.promotion_discount <= ZERO:
            raise NoEffectiveDiscount()
        composition.apply_to(booking)

        if isinstance(caller, AuthenticatedCaller):
            if await self._record_redemption(
                session,
                promotion=promotion,
                booking=booking,
                caller=caller,
                redemption=redemption,
                now=now,
            ):
                await _increment_usage(session, promotion)
        await session.flush()
        return booking

    async def _record_redemption(
        self,
        session: AsyncSession,
        *,
        promotion: Promotion,
        booking: Booking,
        caller: AuthenticatedCaller,
        redemption: PromotionRedemption | None,
        now: datetime.datetime,
    ) -> bool:
        """Add the booking to the caller's redemption; True when a use is consumed."""
        linked = await _redemption_for_booking(
            session, promotion_id=promotion.id, booking_id=booking.id
        )
        if linked is not None:
            linked.details = {**(linked.details or {}), "last_applied_at": now.isoformat()}
            return False

        if redemption is None:
            session.add(
                PromotionRedemption(
                    promotion_id=promotion.id,
                    user_id=caller.user_id,
                    status=RedemptionStatus.USED,
                    applied_booking_id=booking.id,
                    booking_ids=[str(booking.id)],
                    details={"applied_at": now.isoformat()},
                )
            )
            return True

        redemption.booking_ids = [*_carried_bookings(redemption), str(booking.id)]
        redemption.status = RedemptionStatus.USED
        redemption.applied_booking_id = booking.id
        redemption.details = {**(redemption.details or {}), "last_applied_at": now.isoformat()}
        return True

    async def _remove_once(
        self,
        session: AsyncSession,
        *,
        booking_id: uuid.UUID,
        caller: CallerIdentity,
    ) -> Booking:
        now = self._clock()
        booking = await _load_booking(session, booking_id)
        require_booking_access(booking, caller)

        adjustments = parse_adjustments(booking.applied_adjustments)
        applied = find_promotion(adjustments)
        if applied is None:
            raise NoPromotionApplied()

        membership = carried_membership(adjustments, booking.membership_discount)
        total = total_before_discounts(booking.total_price, booking.discount)
        compose_price(total, membership=membership).apply_to(booking)

        promotion = await _lock_promotion(session, applied.code)
        if promotion is not None:
            redemption = await _redemption_for_booking(
                session, promotion_id=promotion.id, booking_id=booking.id
            )
            if redemption is not None:
                _release(redemption, booking.id, now=now)
                await _decrement_usage(session, promotion)
        await session.flush()
        return booking


async def _load_booking(session: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Read and lock the booking; taken before the promotion lock on every path."""
    result = await session.execute(booking_query(booking_id, for_update=True))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound()
    return booking


async def _lock_promotion(session: AsyncSession, code: str) -> Promotion | None:
    """Read the live promotion row, locking it where the backend supports it."""
    stmt = (
        select(Promotion)
        .where(Promotion.code == code)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


def _carried_bookings(redemption: PromotionRedemption) -> list[str]:
    if redemption.status != RedemptionStatus.USED:
        return []
    carried = list(redemption.booking_ids or [])
    if redemption.applied_booking_id is not None:
        linked = str(redemption.applied_booking_id)
        if linked not in carried:
            carried.append(linked)
    return carried


async def _caller_redemption(
    session: AsyncSession, *, promotion_id: uuid.UUID, user_id: uuid.UUID
) -> PromotionRedemption | None:
    return await session.scalar(
        select(PromotionRedemption)
        .where(
            PromotionRedemption.promotion_id == promotion_id,
            PromotionRedemption.user_id == user_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def _redemption_for_booking(
    session: AsyncSession, *, promotion_id: uuid.UUID, booking_id: uuid.UUID
) -> PromotionRedemption | None:
    """Find the used redemption, of any user, that covers ``booking_id``."""
    result = await session.scalars(
        select(PromotionRedemption)
        .where(
            PromotionRedemption.promotion_id == promotion_id,
            PromotionRedemption.status == RedemptionStatus.USED,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    key = str(booking_id)
    for redemption in result:
        if key in _carried_bookings(redemption):
            return redemption
    return None


def _release(
    redemption: PromotionRedemption,
    booking_id: uuid.UUID,
    *,
    now: datetime.datetime,
) -> None:
    remaining = [b for b in _carried_bookings(redemption) if b != str(booking_id)]
    redemption.booking_ids = remaining
    if remaining:
        redemption.applied_booking_id = uuid.UUID(remaining[-1])
    else:
        redemption.status = RedemptionStatus.ACTIVE
        redemption.applied_booking_id = None
    redemption.details = {**(redemption.details or {}), "removed_at": now.isoformat()}


async def _increment_usage(session: AsyncSession, promotion: Promotion) -> None:
    result = await session.execute(
        update(Promotion)
        .where(
            Promotion.id == promotion.id,
            or_(
                Promotion.max_uses.is_(None),
                Promotion.max_uses <= 0,
                Promotion.used_count < Promotion.max_uses,
            ),
        )
        .values(used_count=Promotion.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("Promotion %s lost the race for its last use", promotion.code)
        raise UsageLimitReached()


async def _decrement_usage(session: AsyncSession, promotion: Promotion) -> None:
    await session.execute(
        update(Promotion)
        .where(Promotion.id == promotion.id, Promotion.used_count > 0)
        .values(used_count=Promotion.used_count - 1)
        .execution_options(synchronize_session=False)
    )


__all__ = ["RedemptionLedger"]
