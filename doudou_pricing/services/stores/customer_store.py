"""Customer identities and their aggregate order counters."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.models.customer import Customer
from doudou_pricing.services.pricing.pricing_utils import to_money
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)


class CustomerStore:
    """Customers resolved by email, one Redis hash per customer.

    Counter updates rely on HINCRBY/HINCRBYFLOAT so concurrent orders never
    lose an increment.
    """

    def __init__(self, client: redis.Redis):
        self._client = client
        self._email_index = storage_key("customers", "by_email")

    def _key(self, customer_id: str) -> str:
        return storage_key("customer", customer_id)

    async def get(self, customer_id: str) -> Customer | None:
        data = await self._client.hgetall(self._key(customer_id))
        if not data:
            return None
        customer = Customer.model_validate(data)
        customer.total_spent = to_money(customer.total_spent)
        customer.total_savings = to_money(customer.total_savings)
        return customer

    async def find_by_email(self, email: str) -> Customer | None:
        customer_id = await self._client.hget(self._email_index, email)
        if not customer_id:
            return None
        return await self.get(customer_id)

    async def get_or_create(self, email: str) -> Customer:
        existing = await self.find_by_email(email)
        if existing is not None:
            return existing

        customer = Customer(id=uuid.uuid4().hex, email=email)
        await self._client.hset(
            self._key(customer.id),
            mapping={
                "id": customer.id,
                "email": email,
                "total_orders": 0,
                "total_spent": "0",
                "total_savings": "0",
                "created_at": customer.created_at.isoformat(),
            },
        )
        claimed = await self._client.hsetnx(self._email_index, email, customer.id)
        if not claimed:
            # Another request created the same customer first
            await self._client.delete(self._key(customer.id))
            winner = await self.find_by_email(email)
            if winner is None:
                raise RuntimeError(f"Customer index points to a missing profile: {email}")
            return winner

        logger.info("Created customer %s", customer.id)
        return customer

    async def record_order(
        self,
        customer_id: str,
        amount: Decimal,
        savings: Decimal = Decimal("0"),
    ) -> None:
        """Count one more order and add its amount and savings to the totals."""

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.hincrby(self._key(customer_id), "total_orders", 1)
            pipe.hincrbyfloat(self._key(customer_id), "total_spent", float(amount))
            pipe.hincrbyfloat(self._key(customer_id), "total_savings", float(savings))
            pipe.hset(
                self._key(customer_id), "last_order_at", datetime.now(UTC).isoformat()
            )
            await pipe.execute()


def get_customer_store(client: RedisDependency) -> CustomerStore:
    """FastAPI dependency factory."""

    return CustomerStore(client)


CustomerDependency = Annotated[CustomerStore, Depends(get_customer_store)]
