"""Test fixtures for the pricing engine backend."""
from __future__ import annotations

import datetime
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from pricing_engine.core.config import get_settings
from pricing_engine.core.security import create_access_token
from pricing_engine.db.base import Base
from pricing_engine.db.retry import RetryPolicy
from pricing_engine.db.session import dispose_engine, get_sessionmaker
from pricing_engine.main import app
from pricing_engine.models import (
    Booking,
    BookingStatus,
    DiscountKind,
    GuestType,
    Listing,
    MembershipPlan,
    MembershipStatus,
    Promotion,
    PropertyType,
    User,
    UserRole,
)
from pricing_engine.services.adjustments import MembershipAdjustment, dump_adjustments
from pricing_engine.services.redemption_ledger import RedemptionLedger


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


def _token_for(user: User) -> str:
    return create_access_token(str(user.id), role=user.role.value)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, db_url: str
) -> AsyncIterator[dict[str, Any]]:
    """Yield an async client, a sessionmaker and seeded users and listing."""
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        plan = MembershipPlan(
            slug="plus",
            name="Plus",
            booking_discount_rate=Decimal("10"),
            apply_discount_to_services=False,
            is_active=True,
        )
        session.add(plan)
        await session.flush()

        host = User(email="host@example.com", name="Hana Host", role=UserRole.HOST)
        guest = User(
            email="guest@example.com",
            name="Gio Guest",
            phone_number="+84 (90) 123-4567",
            role=UserRole.GUEST,
        )
        member = User(
            email="member@example.com",
            name="Mai Member",
            role=UserRole.GUEST,
            membership_status=MembershipStatus.ACTIVE,
            membership_plan_id=plan.id,
        )
        outsider = User(
            email="outsider@example.com", name="Otto Outsider", role=UserRole.GUEST
        )
        admin = User(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)
        session.add_all([host, guest, member, outsider, admin])
        await session.flush()

        listing = Listing(
            host_id=host.id,
            title="Cliffside Villa",
            property_type=PropertyType.VILLA,
            base_price=Decimal("1000"),
            cleaning_fee=Decimal("100"),
            service_fee=None,
        )
        session.add(listing)
        await session.commit()

        context: dict[str, Any] = {
            "sessionmaker": sessionmaker,
            "plan_id": plan.id,
            "host_id": host.id,
            "guest_id": guest.id,
            "member_id": member.id,
            "outsider_id": outsider.id,
            "admin_id": admin.id,
            "listing_id": listing.id,
            "host_token": _token_for(host),
            "guest_token": _token_for(guest),
            "member_token": _token_for(member),
            "outsider_token": _token_for(outsider),
            "admin_token": _token_for(admin),
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context


@pytest.fixture()
def sessionmaker(app_context: dict[str, Any]) -> async_sessionmaker[AsyncSession]:
    return app_context["sessionmaker"]


@pytest.fixture()
def ledger(sessionmaker: async_sessionmaker[AsyncSession]) -> RedemptionLedger:
    return RedemptionLedger(
        sessionmaker, retry_policy=RetryPolicy(max_attempts=3, backoff_seconds=0)
    )


@pytest.fixture()
def make_promotion(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Promotion]]:
    """Factory persisting a promotion; keyword overrides replace defaults."""

    async def _make(code: str = "SAVE10", **overrides: Any) -> Promotion:
        values: dict[str, Any] = {
            "code": code,
            "name": f"{code} promotion",
            "discount_kind": DiscountKind.PERCENTAGE,
            "discount_value": Decimal("10"),
        }
        values.update(overrides)
        async with sessionmaker() as session:
            promotion = Promotion(**values)
            session.add(promotion)
            await session.commit()
            return promotion

    return _make


@pytest.fixture()
def make_booking(
    app_context: dict[str, Any],
    sessionmaker: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Booking]]:
    """Factory persisting a booking with a given pre-discount total."""

    async def _make(
        *,
        guest_id: Any = None,
        total: Decimal = Decimal("1000"),
        membership_discount: Decimal = Decimal("0"),
        membership_entry: bool = True,
        status: BookingStatus = BookingStatus.PENDING,
        check_in: datetime.date = datetime.date(2027, 7, 2),
        check_out: datetime.date = datetime.date(2027, 7, 5),
        contact_phone: str | None = None,
    ) -> Booking:
        adjustments = []
        if membership_discount > 0 and membership_entry:
            adjustments = dump_adjustments(
                [MembershipAdjustment(amount=membership_discount, rate=Decimal("10"))]
            )
        async with sessionmaker() as session:
            booking = Booking(
                listing_id=app_context["listing_id"],
                host_id=app_context["host_id"],
                guest_id=guest_id,
                guest_type=GuestType.REGISTERED if guest_id else GuestType.WALK_IN,
                contact_phone=contact_phone,
                status=status,
                check_in=check_in,
                check_out=check_out,
                nights=(check_out - check_in).days,
                base_price=total,
                membership_discount=membership_discount,
                promotion_discount=Decimal("0"),
                discount=membership_discount,
                total_price=total - membership_discount,
                applied_adjustments=adjustments,
            )
            session.add(booking)
            await session.commit()
            return booking

    return _make


@pytest.fixture()
def fetch(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> Callable[[type, Any], Awaitable[Any]]:
    """Read a fresh copy of a row in its own session."""

    async def _fetch(model: type, ident: Any) -> Any:
        async with sessionmaker() as session:
            return await session.get(model, ident)

    return _fetch
