"""Redis-backed ledger of discounts granted on finalized orders."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from redis.exceptions import RedisError

from doudou_pricing.models.pricing import AppliedDiscount, DiscountType
from doudou_pricing.services.pricing.pricing_utils import to_money
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)


class DiscountLedger:
    """Append-only list of applied discounts per customer, newest first.

    Entries are keyed by order id and an order is recorded at most once.
    """

    def __init__(self, client: redis.Redis):
        self._client = client
        self._orders_index = storage_key("discounts", "by_order")

    def _key(self, customer_id: str) -> str:
        return storage_key("discounts", customer_id)

    async def record(
        self,
        *,
        order_id: str,
        customer_id: str,
        discount_type: DiscountType,
        reason: str,
        original_price: Decimal,
        discounted_price: Decimal,
        savings_amount: Decimal,
        percentage: int,
        doudou_id: str | None = None,
    ) -> bool:
        """Persist a ledger entry. Failures are logged and reported as False.

        Recording an order that is already in the ledger is a no-op.
        """

        try:
            entry = AppliedDiscount(
                id=order_id,
                order_id=order_id,
                customer_id=customer_id,
                discount_type=discount_type,
                reason=reason,
                original_price=original_price,
                discounted_price=discounted_price,
                savings_amount=savings_amount,
                percentage=percentage,
                doudou_id=doudou_id,
            )
            first = await self._client.hsetnx(self._orders_index, order_id, customer_id)
            if not first:
                logger.info("Discount of order %s already recorded", order_id)
                return True
            try:
                await self._client.lpush(self._key(customer_id), entry.model_dump_json())
            except Exception:
                await self._client.hdel(self._orders_index, order_id)
                raise
        except Exception as exc:
            logger.error(
                "Failed to record applied discount: %s",
                exc,
                extra={"order_id": order_id, "customer_id": customer_id},
                exc_info=True,
            )
            return False

        logger.info(
            "Recorded %s discount on order %s",
            discount_type,
            order_id,
            extra={"customer_id": customer_id, "savings": str(savings_amount)},
        )
        return True

    async def history(self, customer_id: str) -> list[AppliedDiscount]:
        try:
            raw_entries = await self._client.lrange(self._key(customer_id), 0, -1)
        except RedisError as exc:
            logger.warning("Could not read discount history for %s: %s", customer_id, exc)
            return []
        return [AppliedDiscount.model_validate_json(raw) for raw in raw_entries]

    async def total_savings(self, customer_id: str) -> Decimal:
        entries = await self.history(customer_id)
        return to_money(sum((entry.savings_amount for entry in entries), Decimal("0")))


def get_discount_ledger(client: RedisDependency) -> DiscountLedger:
    """FastAPI dependency factory."""

    return DiscountLedger(client)


LedgerDependency = Annotated[DiscountLedger, Depends(get_discount_ledger)]
