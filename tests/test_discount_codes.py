"""Tests for promotional discount codes."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from doudou_pricing.models.discount_code import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
)
from doudou_pricing.services.pricing.discount_codes import (
    DiscountCodeError,
    evaluate_discount_code,
)
from doudou_pricing.services.stores.discount_code_store import DuplicateDiscountCodeError

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _code(**overrides) -> DiscountCode:
    data = {
        "id": "code-1",
        "code": "doudou10",
        "discount_type": "percentage",
        "discount_value": Decimal("10"),
        "valid_from": NOW - timedelta(days=1),
    }
    data.update(overrides)
    return DiscountCode(**data)


@pytest.mark.unit
def test_codes_are_stored_upper_case():
    assert _code().code == "DOUDOU10"


@pytest.mark.unit
def test_percentage_code_amount():
    assert evaluate_discount_code(_code(), Decimal("16.40"), NOW) == Decimal("1.64")


@pytest.mark.unit
def test_fixed_code_is_capped_at_total():
    code = _code(discount_type="fixed", discount_value=Decimal("20"))

    assert evaluate_discount_code(code, Decimal("16.40"), NOW) == Decimal("16.40")
    assert evaluate_discount_code(code, Decimal("45.00"), NOW) == Decimal("20.00")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("overrides", "total", "message"),
    [
        ({"valid_from": NOW + timedelta(hours=1)}, "16.40", "not valid yet"),
        ({"valid_until": NOW - timedelta(seconds=1)}, "16.40", "expired"),
        ({"usage_limit": 2, "used_count": 2}, "16.40", "usage limit"),
        ({"minimum_amount": Decimal("20")}, "16.40", "20,00€"),
    ],
)
def test_rejected_codes(overrides, total, message):
    with pytest.raises(DiscountCodeError, match=message):
        evaluate_discount_code(_code(**overrides), Decimal(total), NOW)


@pytest.mark.unit
def test_code_within_limits_is_accepted():
    code = _code(
        usage_limit=2,
        used_count=1,
        minimum_amount=Decimal("16.40"),
        valid_until=NOW + timedelta(days=1),
    )

    assert evaluate_discount_code(code, Decimal("16.40"), NOW) == Decimal("1.64")


@pytest.mark.unit
def test_percentage_above_hundred_is_invalid():
    with pytest.raises(ValueError):
        DiscountCodeCreate(code="X", discount_type="percentage", discount_value=Decimal("150"))


@pytest.mark.asyncio
async def test_store_lookup_is_case_insensitive(discount_codes):
    created = await discount_codes.create(
        DiscountCodeCreate(code="Noel", discount_type="fixed", discount_value=Decimal("5"))
    )

    found = await discount_codes.find_active(" noel ")

    assert found.id == created.id
    assert found.code == "NOEL"
    assert await discount_codes.find_active("unknown") is None


@pytest.mark.asyncio
async def test_store_rejects_duplicate_codes(discount_codes):
    payload = DiscountCodeCreate(code="NOEL", discount_type="fixed", discount_value=Decimal("5"))
    await discount_codes.create(payload)

    with pytest.raises(DuplicateDiscountCodeError):
        await discount_codes.create(payload.model_copy(update={"code": "noel"}))


@pytest.mark.asyncio
async def test_deactivated_code_is_not_found(discount_codes):
    created = await discount_codes.create(
        DiscountCodeCreate(code="NOEL", discount_type="fixed", discount_value=Decimal("5"))
    )

    await discount_codes.deactivate(created.id)

    assert await discount_codes.find_active("NOEL") is None
    assert (await discount_codes.get(created.id)).active is False


@pytest.mark.asyncio
async def test_concurrent_redemptions_are_all_counted(discount_codes):
    created = await discount_codes.create(
        DiscountCodeCreate(code="NOEL", discount_type="fixed", discount_value=Decimal("5"))
    )

    await asyncio.gather(*(discount_codes.increment_usage(created.id) for _ in range(5)))

    assert (await discount_codes.get(created.id)).used_count == 5
    assert await discount_codes.increment_usage("missing") is None


@pytest.mark.asyncio
async def test_renaming_a_code_moves_the_lookup(discount_codes):
    created = await discount_codes.create(
        DiscountCodeCreate(code="NOEL", discount_type="fixed", discount_value=Decimal("5"))
    )

    await discount_codes.update(created.id, DiscountCodeUpdate(code="hiver"))

    assert await discount_codes.find_active("NOEL") is None
    assert (await discount_codes.find_active("HIVER")).id == created.id


@pytest.mark.asyncio
async def test_validate_endpoint(client):
    created = await client.post(
        "/admin/discount-codes",
        json={"code": "doudou10", "discountType": "percentage", "discountValue": 10},
    )
    assert created.status_code == 201

    response = await client.post(
        "/discount-codes/validate", json={"code": "Doudou10", "totalAmount": 16.4}
    )

    assert response.status_code == 200
    data = response.json()["discountCode"]
    assert data["code"] == "DOUDOU10"
    assert data["discountType"] == "percentage"
    assert data["discountAmount"] == 1.64


@pytest.mark.asyncio
async def test_validate_unknown_code(client):
    response = await client.post(
        "/discount-codes/validate", json={"code": "NOPE", "totalAmount": 16.4}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_validate_below_minimum_amount(client):
    await client.post(
        "/admin/discount-codes",
        json={
            "code": "BIG",
            "discountType": "fixed",
            "discountValue": 5,
            "minimumAmount": 30,
        },
    )

    response = await client.post(
        "/discount-codes/validate", json={"code": "BIG", "totalAmount": 16.4}
    )

    assert response.status_code == 400
    assert "30,00€" in response.json()["detail"]


@pytest.mark.asyncio
async def test_usage_limit_over_http(client):
    created = (
        await client.post(
            "/admin/discount-codes",
            json={
                "code": "ONCE",
                "discountType": "fixed",
                "discountValue": 5,
                "usageLimit": 1,
            },
        )
    ).json()

    used = await client.put(f"/discount-codes/{created['id']}/use")
    assert used.status_code == 200
    assert used.json()["usedCount"] == 1

    response = await client.post(
        "/discount-codes/validate", json={"code": "ONCE", "totalAmount": 16.4}
    )
    assert response.status_code == 400
    assert "usage limit" in response.json()["detail"]

    missing = await client.put("/discount-codes/missing/use")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_admin_discount_code_lifecycle(client):
    created = (
        await client.post(
            "/admin/discount-codes",
            json={"code": "noel", "discountType": "fixed", "discountValue": 5},
        )
    ).json()

    duplicate = await client.post(
        "/admin/discount-codes",
        json={"code": "NOEL", "discountType": "fixed", "discountValue": 3},
    )
    assert duplicate.status_code == 400

    patched = await client.patch(
        f"/admin/discount-codes/{created['id']}", json={"discountValue": 7}
    )
    assert patched.status_code == 200
    assert patched.json()["discountValue"] == 7.0

    invalid = await client.patch(
        f"/admin/discount-codes/{created['id']}",
        json={"discountType": "percentage", "discountValue": 150},
    )
    assert invalid.status_code == 400

    listed = await client.get("/admin/discount-codes")
    assert [code["code"] for code in listed.json()] == ["NOEL"]

    deleted = await client.delete(f"/admin/discount-codes/{created['id']}")
    assert deleted.json()["active"] is False
    rejected = await client.post(
        "/discount-codes/validate", json={"code": "NOEL", "totalAmount": 16.4}
    )
    assert rejected.status_code == 404

    assert (await client.delete("/admin/discount-codes/missing")).status_code == 404
