"""API tests for applying and removing promotion codes."""

from __future__ import annotations

from decimal import Decimal

import pytest
from jose import jwt

from pricing_engine.models import DiscountKind, Promotion
from pricing_engine.services.errors import UsageLimitReached

pytestmark = pytest.mark.asyncio


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _url(booking_id) -> str:
    return f"/api/v1/bookings/{booking_id}/promotions"


async def test_apply_and_remove_round_trip(
    app_context, make_booking, make_promotion, fetch
) -> None:
    client = app_context["client"]
    booking = await make_booking(
        guest_id=app_context["member_id"],
        total=Decimal("1000000"),
        membership_discount=Decimal("100000"),
        contact_phone="+84 90-123 4567",
    )
    promotion = await make_promotion(
        "SUMMER15", discount_value=Decimal("15"), max_discount=Decimal("120000")
    )
    headers = _auth(app_context["member_token"])

    response = await client.post(_url(booking.id), json={"code": "summer15"}, headers=headers)
    assert response.status_code == 200, response.text
    payload = response.json()
    assert Decimal(payload["membership_discount"]) == Decimal("100000")
    assert Decimal(payload["promotion_discount"]) == Decimal("120000")
    assert Decimal(payload["total_price"]) == Decimal("780000")
    membership, applied = payload["applied_adjustments"]
    assert membership["type"] == "MEMBERSHIP"
    assert applied["type"] == "PROMOTION"
    assert applied["code"] == "SUMMER15"
    assert applied["discountType"] == "percentage"
    assert payload["guest_contact"]["phone"] == "+84901234567"
    assert payload["can_review"] is False
    assert (await fetch(Promotion, promotion.id)).used_count == 1

    response = await client.delete(_url(booking.id), headers=headers)
    assert response.status_code == 200, response.text
    payload = response.json()
    assert Decimal(payload["total_price"]) == Decimal("900000")
    assert [entry["type"] for entry in payload["applied_adjustments"]] == ["MEMBERSHIP"]
    assert (await fetch(Promotion, promotion.id)).used_count == 0


async def test_validation_failures_are_400(app_context, make_booking, make_promotion) -> None:
    client = app_context["client"]
    booking = await make_booking(
        guest_id=app_context["member_id"],
        total=Decimal("1000000"),
        membership_discount=Decimal("100000"),
    )
    await make_promotion("SOLO", stack_with_membership=False)
    headers = _auth(app_context["member_token"])

    response = await client.post(_url(booking.id), json={"code": "SOLO"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Promotion code cannot be combined with membership discounts"
    )

    response = await client.post(_url(booking.id), json={"code": "ab"}, headers=headers)
    assert response.status_code == 400

    response = await client.post(_url(booking.id), json={}, headers=headers)
    assert response.status_code == 400

    response = await client.delete(_url(booking.id), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No promotion code is applied to this booking"


async def test_not_found(app_context, make_booking) -> None:
    client = app_context["client"]
    headers = _auth(app_context["guest_token"])
    booking = await make_booking(guest_id=app_context["guest_id"])

    response = await client.post(
        _url("4b1f7f55-7c1e-4b8e-9d3a-1f0a7b9c2d11"), json={"code": "SAVE10"}, headers=headers
    )
    assert response.status_code == 404

    response = await client.post(_url(booking.id), json={"code": "MISSING"}, headers=headers)
    assert response.status_code == 404


async def test_access_control(app_context, make_booking, make_promotion) -> None:
    client = app_context["client"]
    booking = await make_booking(guest_id=app_context["guest_id"])
    await make_promotion("SAVE10")

    response = await client.post(_url(booking.id), json={"code": "SAVE10"})
    assert response.status_code == 401

    response = await client.post(
        _url(booking.id),
        json={"code": "SAVE10"},
        headers=_auth(app_context["outsider_token"]),
    )
    assert response.status_code == 403

    response = await client.post(
        _url(booking.id), json={"code": "SAVE10"}, headers=_auth("not-a-token")
    )
    assert response.status_code == 401

    response = await client.post(
        _url(booking.id),
        json={"code": "SAVE10"},
        headers=_auth(app_context["host_token"]),
    )
    assert response.status_code == 200


async def test_token_signed_with_other_key_rejected(app_context, make_booking) -> None:
    booking = await make_booking(guest_id=None)
    forged = jwt.encode(
        {"sub": str(app_context["admin_id"]), "role": "admin"}, "wrong", algorithm="HS256"
    )
    response = await app_context["client"].post(
        _url(booking.id), json={"code": "SAVE10"}, headers=_auth(forged)
    )
    assert response.status_code == 401


async def test_walk_in_booking_open_to_anonymous(
    app_context, make_booking, make_promotion, fetch
) -> None:
    booking = await make_booking(guest_id=None)
    promotion = await make_promotion(
        "FLAT100", discount_kind=DiscountKind.FIXED_AMOUNT, discount_value=Decimal("100")
    )

    response = await app_context["client"].post(_url(booking.id), json={"code": "FLAT100"})
    assert response.status_code == 200, response.text
    assert Decimal(response.json()["total_price"]) == Decimal("900")
    assert (await fetch(Promotion, promotion.id)).used_count == 0


async def test_reapply_is_idempotent(app_context, make_booking, make_promotion, fetch) -> None:
    client = app_context["client"]
    booking = await make_booking(guest_id=app_context["guest_id"])
    promotion = await make_promotion("TWICE", max_uses=1)
    headers = _auth(app_context["guest_token"])

    for _ in range(2):
        response = await client.post(_url(booking.id), json={"code": "TWICE"}, headers=headers)
        assert response.status_code == 200, response.text
    assert (await fetch(Promotion, promotion.id)).used_count == 1


async def test_usage_limit_message(app_context, make_booking, make_promotion) -> None:
    booking = await make_booking(guest_id=app_context["guest_id"])
    await make_promotion("SOLDOUT", max_uses=2, used_count=2)
    response = await app_context["client"].post(
        _url(booking.id),
        json={"code": "SOLDOUT"},
        headers=_auth(app_context["guest_token"]),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == UsageLimitReached.default_message


async def test_storage_failure_is_generic_500(
    app_context, make_booking, make_promotion, monkeypatch
) -> None:
    from pricing_engine.services.errors import TransientConflict
    from pricing_engine.services.redemption_ledger import RedemptionLedger

    booking = await make_booking(guest_id=app_context["guest_id"])
    await make_promotion("SAVE10")

    async def _exhausted(self, **_kwargs):
        raise TransientConflict()

    monkeypatch.setattr(RedemptionLedger, "apply_promotion", _exhausted)
    response = await app_context["client"].post(
        _url(booking.id),
        json={"code": "SAVE10"},
        headers=_auth(app_context["guest_token"]),
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
