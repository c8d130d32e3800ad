"""Runtime-editable shipping tier table."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from doudou_pricing.models.shipping import ShippingTier, ShippingTierUpdate
from doudou_pricing.services.pricing.shipping_rules import default_shipping_tiers
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)

_TIERS = TypeAdapter(list[ShippingTier])


class ShippingSettingsStore:
    """Shipping tiers stored as one JSON document, defaults until edited."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._key = storage_key("settings", "shipping")

    async def get_tiers(self) -> list[ShippingTier]:
        try:
            raw = await self._client.get(self._key)
        except RedisError as exc:
            logger.warning("Shipping settings unavailable, using defaults: %s", exc)
            return default_shipping_tiers()
        if not raw:
            return default_shipping_tiers()
        try:
            return _TIERS.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Stored shipping settings are invalid, using defaults: %s", exc)
            return default_shipping_tiers()

    async def save_tiers(self, tiers: list[ShippingTier]) -> list[ShippingTier]:
        await self._client.set(self._key, _TIERS.dump_json(tiers))
        logger.info("Saved %d shipping tiers", len(tiers))
        return tiers

    async def update_tier(
        self, tier_id: str, changes: ShippingTierUpdate
    ) -> list[ShippingTier] | None:
        """Apply a partial update to one tier, None when the tier is unknown."""

        tiers = await self.get_tiers()
        updates = changes.model_dump(exclude_unset=True, exclude_none=True)
        for index, tier in enumerate(tiers):
            if tier.id == tier_id:
                merged = tier.model_dump() | updates
                tiers[index] = ShippingTier.model_validate(merged)
                return await self.save_tiers(tiers)
        return None


def get_shipping_store(client: RedisDependency) -> ShippingSettingsStore:
    """FastAPI dependency factory."""

    return ShippingSettingsStore(client)


ShippingDependency = Annotated[ShippingSettingsStore, Depends(get_shipping_store)]
