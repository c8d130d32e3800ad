"""Registry of finalized orders, so each paid order is bookkept once."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.models.orders import FinalizationReport
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)

PENDING = "pending"


class ProcessedOrderRegistry:
    """One key per order id: ``pending`` while in flight, then the report."""

    def __init__(self, client: redis.Redis):
        self._client = client

    def _key(self, order_id: str) -> str:
        return storage_key("orders", "processed", order_id)

    async def claim(self, order_id: str) -> bool:
        """Return True for the first caller only."""

        return bool(await self._client.set(self._key(order_id), PENDING, nx=True))

    async def release(self, order_id: str) -> None:
        await self._client.delete(self._key(order_id))

    async def get_report(self, order_id: str) -> FinalizationReport | None:
        raw = await self._client.get(self._key(order_id))
        if not raw or raw == PENDING:
            return None
        return FinalizationReport.model_validate_json(raw)

    async def save_report(self, report: FinalizationReport) -> None:
        await self._client.set(self._key(report.order_id), report.model_dump_json())


def get_order_registry(client: RedisDependency) -> ProcessedOrderRegistry:
    """FastAPI dependency factory."""

    return ProcessedOrderRegistry(client)


OrderRegistryDependency = Annotated[ProcessedOrderRegistry, Depends(get_order_registry)]
