"""History of the named stuffed animals ("doudous") each customer ordered."""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.models.customer import DoudouRecord
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)


def doudou_record_id(pet_name: str, animal_type: str) -> str:
    """Stable identifier of a (pet name, animal type) pair, case-sensitive."""

    raw = json.dumps([pet_name, animal_type], ensure_ascii=False)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


class DoudouHistoryStore:
    """One Redis hash per (customer, pet name, animal type) tuple."""

    def __init__(self, client: redis.Redis):
        self._client = client

    def _key(self, customer_id: str, record_id: str) -> str:
        return storage_key("doudou", customer_id, record_id)

    def _index_key(self, customer_id: str) -> str:
        return storage_key("doudous", customer_id)

    async def find(
        self, customer_id: str, pet_name: str, animal_type: str
    ) -> DoudouRecord | None:
        record_id = doudou_record_id(pet_name, animal_type)
        data = await self._client.hgetall(self._key(customer_id, record_id))
        if not data:
            return None
        return DoudouRecord.model_validate(data)

    async def list_for_customer(self, customer_id: str) -> list[DoudouRecord]:
        record_ids = await self._client.smembers(self._index_key(customer_id))
        records = []
        for record_id in record_ids:
            data = await self._client.hgetall(self._key(customer_id, record_id))
            if data:
                records.append(DoudouRecord.model_validate(data))
        return sorted(
            records,
            key=lambda record: record.last_order_at or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )

    async def register_order(
        self,
        customer_id: str,
        pet_name: str,
        animal_type: str,
        photo_hash: str | None = None,
        order_id: str | None = None,
    ) -> DoudouRecord:
        """Create the record on the first order, then count every later one.

        A supplied photo hash replaces the stored one; otherwise the stored
        hash is kept.
        """

        record_id = doudou_record_id(pet_name, animal_type)
        key = self._key(customer_id, record_id)
        now = datetime.now(UTC).isoformat()

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.hsetnx(key, "id", record_id)
            pipe.hsetnx(key, "customer_id", customer_id)
            pipe.hsetnx(key, "pet_name", pet_name)
            pipe.hsetnx(key, "animal_type", animal_type)
            pipe.hsetnx(key, "first_order_at", now)
            if order_id:
                pipe.hsetnx(key, "first_order_id", order_id)
            if photo_hash:
                pipe.hset(key, "photo_hash", photo_hash)
            pipe.hincrby(key, "order_count", 1)
            pipe.hset(key, "last_order_at", now)
            pipe.sadd(self._index_key(customer_id), record_id)
            await pipe.execute()

        record = await self.find(customer_id, pet_name, animal_type)
        if record is None:
            raise RuntimeError(f"Doudou record vanished after write: {key}")
        logger.info(
            "Registered order %d for doudou %s (%s)",
            record.order_count,
            pet_name,
            animal_type,
        )
        return record


def get_doudou_store(client: RedisDependency) -> DoudouHistoryStore:
    """FastAPI dependency factory."""

    return DoudouHistoryStore(client)


DoudouDependency = Annotated[DoudouHistoryStore, Depends(get_doudou_store)]
