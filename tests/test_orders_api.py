"""Tests for order finalization."""

from __future__ import annotations

from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from doudou_pricing.models.orders import FinalizedOrder
from doudou_pricing.models.pricing import DiscountInfo
from doudou_pricing.services.orders.finalizer import OrderFinalizer


def _order(**overrides) -> dict:
    order = {
        "orderId": "ORD-1",
        "email": "claire@example.com",
        "petName": "Lapinou",
        "animalType": "rabbit",
        "photoUrl": "https://cdn.example.com/lapinou.jpg",
        "originalPrice": 16.40,
        "finalPrice": 16.40,
    }
    order.update(overrides)
    return order


@pytest.mark.asyncio
async def test_finalize_first_order(client, customers, doudous, ledger):
    response = await client.post("/orders/finalize", json=_order())

    assert response.status_code == 200
    report = response.json()
    assert report["success"] is True
    assert report["profileUpdated"] is True
    assert report["doudouRegistered"] is True
    assert report["discountRecorded"] is False

    customer = await customers.find_by_email("claire@example.com")
    assert customer.id == report["customerId"]
    assert customer.total_orders == 1
    assert customer.total_spent == Decimal("16.40")
    record = await doudous.find(customer.id, "Lapinou", "rabbit")
    assert record.order_count == 1
    assert record.first_order_id == "ORD-1"
    assert await ledger.history(customer.id) == []


@pytest.mark.asyncio
async def test_second_order_of_same_doudou_is_discounted(client, catalog):
    await client.post("/orders/finalize", json=_order())

    pricing = await client.post(
        "/pricing",
        json={
            "email": "claire@example.com",
            "petName": "Lapinou",
            "animalType": "rabbit",
            "numberOfSheets": 1,
            "photoUrl": "https://cdn.example.com/lapinou.jpg",
        },
    )

    assert pricing.json()["pricing"]["discount"]["type"] == "repeat_doudou"
    assert pricing.json()["pricing"]["finalPrice"] == 12.4


@pytest.mark.asyncio
async def test_granted_discount_is_recorded(client, customers, ledger):
    response = await client.post(
        "/orders/finalize",
        json=_order(
            orderId="ORD-2",
            finalPrice=12.40,
            discount={
                "type": "repeat_doudou",
                "percentage": 30,
                "amount": 4.00,
                "reason": "New sheet for Lapinou: this is order 2 for Lapinou",
            },
        ),
    )

    report = response.json()
    assert report["discountRecorded"] is True

    customer = await customers.find_by_email("claire@example.com")
    assert customer.total_savings == Decimal("4.00")
    history = await ledger.history(customer.id)
    assert len(history) == 1
    assert history[0].order_id == "ORD-2"
    assert history[0].savings_amount == Decimal("4.00")
    assert history[0].doudou_id is not None


@pytest.mark.asyncio
async def test_invalid_order_is_rejected(client):
    response = await client.post("/orders/finalize", json=_order(orderId=""))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unreachable_profile_store_is_reported(doudous, ledger, order_registry):
    class _UnavailableCustomers:
        async def get_or_create(self, email):
            raise RedisConnectionError("identity store unavailable")

    finalizer = OrderFinalizer(_UnavailableCustomers(), doudous, ledger, order_registry)

    report = await finalizer.finalize(FinalizedOrder.model_validate(_order()))

    assert report.success is False
    assert report.customer_id is None
    assert report.doudou_registered is False


@pytest.mark.asyncio
async def test_history_failure_does_not_block_profile_update(
    customers, ledger, order_registry
):
    class _UnavailableHistory:
        async def register_order(self, *args, **kwargs):
            raise RedisConnectionError("history store unavailable")

    finalizer = OrderFinalizer(customers, _UnavailableHistory(), ledger, order_registry)
    order = FinalizedOrder.model_validate(
        _order(
            finalPrice=12.40,
            discount=DiscountInfo(
                type="repeat_doudou", percentage=30, amount=Decimal("4"), reason="repeat"
            ).model_dump(),
        )
    )

    report = await finalizer.finalize(order)

    assert report.success is False
    assert report.profile_updated is True
    assert report.doudou_registered is False
    assert report.discount_recorded is True
    customer = await customers.find_by_email("claire@example.com")
    assert customer.total_orders == 1


@pytest.mark.asyncio
async def test_replayed_order_is_bookkept_once(client, customers, doudous, ledger):
    order = _order(
        orderId="ORD-9",
        finalPrice=12.40,
        discount={
            "type": "repeat_doudou",
            "percentage": 30,
            "amount": 4.00,
            "reason": "New sheet for Lapinou",
        },
    )

    first = await client.post("/orders/finalize", json=order)
    second = await client.post("/orders/finalize", json=order)

    assert first.json()["alreadyFinalized"] is False
    replay = second.json()
    assert second.status_code == 200
    assert replay["alreadyFinalized"] is True
    assert replay["success"] is True
    assert replay["customerId"] == first.json()["customerId"]

    customer = await customers.find_by_email("claire@example.com")
    assert customer.total_orders == 1
    assert customer.total_savings == Decimal("4.00")
    record = await doudous.find(customer.id, "Lapinou", "rabbit")
    assert record.order_count == 1
    history = await ledger.history(customer.id)
    assert [entry.order_id for entry in history] == ["ORD-9"]
    assert await ledger.total_savings(customer.id) == Decimal("4.00")


@pytest.mark.asyncio
async def test_order_can_be_retried_after_customer_lookup_failure(
    customers, doudous, ledger, order_registry
):
    class _UnavailableCustomers:
        async def get_or_create(self, email):
            raise RedisConnectionError("identity store unavailable")

    order = FinalizedOrder.model_validate(_order())
    failed = await OrderFinalizer(
        _UnavailableCustomers(), doudous, ledger, order_registry
    ).finalize(order)
    retried = await OrderFinalizer(customers, doudous, ledger, order_registry).finalize(order)

    assert failed.success is False
    assert retried.success is True
    assert retried.already_finalized is False
