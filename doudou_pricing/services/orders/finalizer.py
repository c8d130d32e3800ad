"""Reflect a paid order into the customer profile, doudou history and ledger."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends

from doudou_pricing.models.orders import FinalizationReport, FinalizedOrder
from doudou_pricing.services.pricing.pricing_utils import generate_photo_hash
from doudou_pricing.services.stores.customer_store import (
    CustomerDependency,
    CustomerStore,
)
from doudou_pricing.services.stores.discount_ledger import (
    DiscountLedger,
    LedgerDependency,
)
from doudou_pricing.services.stores.doudou_store import (
    DoudouDependency,
    DoudouHistoryStore,
)
from doudou_pricing.services.stores.order_registry import (
    OrderRegistryDependency,
    ProcessedOrderRegistry,
)

logger = logging.getLogger(__name__)


class OrderFinalizer:
    """Best-effort bookkeeping once an order has been paid.

    None of the writes may block the order: each failure is logged and
    surfaced in the returned report only. An order id is processed once;
    replays get the stored report back without touching any counter.
    """

    def __init__(
        self,
        customers: CustomerStore,
        doudous: DoudouHistoryStore,
        ledger: DiscountLedger,
        orders: ProcessedOrderRegistry,
    ) -> None:
        self._customers = customers
        self._doudous = doudous
        self._ledger = ledger
        self._orders = orders

    async def finalize(self, order: FinalizedOrder) -> FinalizationReport:
        report = FinalizationReport(success=False, order_id=order.order_id)

        try:
            claimed = await self._orders.claim(order.order_id)
        except Exception as exc:
            logger.error("Could not claim order %s: %s", order.order_id, exc)
            return report

        if not claimed:
            return await self._replay(order.order_id)

        try:
            customer = await self._customers.get_or_create(order.email)
        except Exception as exc:
            logger.error(
                "Could not resolve customer for order %s: %s",
                order.order_id,
                exc,
                exc_info=True,
            )
            await self._release(order.order_id)
            return report
        report.customer_id = customer.id

        try:
            await self._customers.record_order(
                customer.id, order.final_price, order.savings_amount
            )
            report.profile_updated = True
        except Exception as exc:
            logger.error("Failed to update stats for %s: %s", customer.id, exc)

        doudou_id = None
        try:
            photo_hash = generate_photo_hash(order.photo_url) if order.photo_url else None
            record = await self._doudous.register_order(
                customer.id,
                order.pet_name,
                order.animal_type,
                photo_hash=photo_hash,
                order_id=order.order_id,
            )
            doudou_id = record.id
            report.doudou_registered = True
        except Exception as exc:
            logger.error("Failed to register doudou %s: %s", order.pet_name, exc)

        discount = order.discount
        if discount is not None and discount.type != "none" and discount.amount > 0:
            report.discount_recorded = await self._ledger.record(
                order_id=order.order_id,
                customer_id=customer.id,
                discount_type=discount.type,
                reason=discount.reason,
                original_price=order.original_price,
                discounted_price=order.final_price,
                savings_amount=order.savings_amount,
                percentage=discount.percentage,
                doudou_id=doudou_id,
            )

        report.success = report.profile_updated and report.doudou_registered
        try:
            await self._orders.save_report(report)
        except Exception as exc:
            logger.error("Could not store report of order %s: %s", order.order_id, exc)

        logger.info(
            "Finalized order %s",
            order.order_id,
            extra=report.model_dump(),
        )
        return report

    async def _replay(self, order_id: str) -> FinalizationReport:
        logger.info("Order %s was already finalized, skipping writes", order_id)
        try:
            previous = await self._orders.get_report(order_id)
        except Exception as exc:
            logger.warning("Could not read report of order %s: %s", order_id, exc)
            previous = None

        if previous is None:
            # Still being processed by another request
            previous = FinalizationReport(success=False, order_id=order_id)
        previous.already_finalized = True
        return previous

    async def _release(self, order_id: str) -> None:
        try:
            await self._orders.release(order_id)
        except Exception as exc:
            logger.error("Could not release order %s: %s", order_id, exc)


def get_order_finalizer(
    customers: CustomerDependency,
    doudous: DoudouDependency,
    ledger: LedgerDependency,
    orders: OrderRegistryDependency,
) -> OrderFinalizer:
    """FastAPI dependency factory."""

    return OrderFinalizer(customers, doudous, ledger, orders)


FinalizerDependency = Annotated[OrderFinalizer, Depends(get_order_finalizer)]
