"""Seed membership plans and the default promotion codes."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import select

from pricing_engine.db.session import dispose_engine, get_sessionmaker
from pricing_engine.models import DiscountKind, MembershipPlan, Promotion

PLANS: list[dict[str, Any]] = [
    {
        "slug": "plus",
        "name": "Plus",
        "booking_discount_rate": Decimal("5"),
        "apply_discount_to_services": False,
    },
    {
        "slug": "premium",
        "name": "Premium",
        "booking_discount_rate": Decimal("10"),
        "apply_discount_to_services": True,
    },
]


def _promotions(now: datetime) -> list[dict[str, Any]]:
    return [
        {
            "code": "POINTS15",
            "name": "Loyalty points voucher 15%",
            "description": "15% off up to 1,500,000 for members redeeming points.",
            "discount_kind": DiscountKind.PERCENTAGE,
            "discount_value": Decimal("15"),
            "max_discount": Decimal("1500000"),
            "min_booking_value": Decimal("3000000"),
            "max_uses": 300,
            "max_uses_per_user": 2,
            "valid_from": now,
            "valid_until": now + timedelta(days=90),
        },
        {
            "code": "VILLA20",
            "name": "Villa stay 20%",
            "description": "20% off villa stays.",
            "discount_kind": DiscountKind.PERCENTAGE,
            "discount_value": Decimal("20"),
            "max_discount": Decimal("3000000"),
            "min_booking_value": Decimal("6000000"),
            "max_uses": 120,
            "max_uses_per_user": 1,
            "property_types": ["villa"],
            "valid_from": now,
            "valid_until": now + timedelta(days=60),
        },
    ]


async def seed_promotions() -> None:
    sessionmaker = get_sessionmaker()
    now = datetime.now(UTC)
    async with sessionmaker() as session:
        existing_plans = set(
            (await session.execute(select(MembershipPlan.slug))).scalars().all()
        )
        existing_codes = set(
            (await session.execute(select(Promotion.code))).scalars().all()
        )

        plans_created = 0
        for plan in PLANS:
            if plan["slug"] not in existing_plans:
                session.add(MembershipPlan(**plan))
                plans_created += 1

        promos_created = 0
        for promotion in _promotions(now):
            if promotion["code"] not in existing_codes:
                session.add(Promotion(**promotion))
                promos_created += 1

        if plans_created or promos_created:
            await session.commit()

        print(
            f"Seeded {plans_created} membership plan(s) and {promos_created} promotion(s)."
        )


async def _seed_async() -> None:
    try:
        await seed_promotions()
    finally:
        await dispose_engine()


def main() -> None:
    asyncio.run(_seed_async())


if __name__ == "__main__":
    main()
