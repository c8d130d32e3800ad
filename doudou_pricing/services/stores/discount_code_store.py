"""Redis-backed promotional discount codes."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.models.discount_code import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
)
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)


class DuplicateDiscountCodeError(ValueError):
    """Another discount code already uses this code."""


class DiscountCodeStore:
    """Codes as JSON documents, a unique code index and a usage counter hash.

    ``used_count`` lives in its own hash so that redeeming a code is a single
    HINCRBY and never races with back-office edits of the document.
    """

    def __init__(self, client: redis.Redis):
        self._client = client
        self._codes = storage_key("discount_codes")
        self._index = storage_key("discount_codes", "by_code")
        self._usage = storage_key("discount_codes", "usage")

    async def _load(self, raw: str) -> DiscountCode:
        code = DiscountCode.model_validate_json(raw)
        code.used_count = int(await self._client.hget(self._usage, code.id) or 0)
        return code

    async def list_codes(self) -> list[DiscountCode]:
        codes = [await self._load(raw) for raw in await self._client.hvals(self._codes)]
        return sorted(codes, key=lambda code: code.created_at, reverse=True)

    async def get(self, code_id: str) -> DiscountCode | None:
        raw = await self._client.hget(self._codes, code_id)
        if not raw:
            return None
        return await self._load(raw)

    async def find_active(self, code: str) -> DiscountCode | None:
        """Case-insensitive lookup of an active code."""

        code_id = await self._client.hget(self._index, code.strip().upper())
        if not code_id:
            return None
        found = await self.get(code_id)
        if found is None or not found.active:
            return None
        return found

    async def create(self, payload: DiscountCodeCreate) -> DiscountCode:
        data = payload.model_dump(exclude_none=True)
        code = DiscountCode(id=uuid.uuid4().hex, **data)
        if not await self._client.hsetnx(self._index, code.code, code.id):
            raise DuplicateDiscountCodeError(f"Discount code {code.code} already exists")
        await self._client.hset(self._codes, code.id, code.model_dump_json())
        logger.info("Created discount code %s", code.code)
        return code

    async def update(
        self, code_id: str, changes: DiscountCodeUpdate
    ) -> DiscountCode | None:
        """Apply a partial update, returning None when the code is unknown."""

        current = await self.get(code_id)
        if current is None:
            return None

        updates = changes.model_dump(exclude_unset=True, exclude_none=True)
        updates["updated_at"] = datetime.now(UTC)
        updated = DiscountCode.model_validate(current.model_dump() | updates)

        if updated.code != current.code:
            if not await self._client.hsetnx(self._index, updated.code, code_id):
                raise DuplicateDiscountCodeError(
                    f"Discount code {updated.code} already exists"
                )
            await self._client.hdel(self._index, current.code)

        await self._client.hset(self._codes, code_id, updated.model_dump_json())
        logger.info("Discount code %s updated", updated.code)
        return updated

    async def deactivate(self, code_id: str) -> DiscountCode | None:
        return await self.update(code_id, DiscountCodeUpdate(active=False))

    async def increment_usage(self, code_id: str) -> DiscountCode | None:
        """Count one redemption, None when the code is unknown."""

        code = await self.get(code_id)
        if code is None:
            return None
        code.used_count = await self._client.hincrby(self._usage, code_id, 1)
        logger.info("Discount code %s used %d time(s)", code.code, code.used_count)
        return code


def get_discount_code_store(client: RedisDependency) -> DiscountCodeStore:
    """FastAPI dependency factory."""

    return DiscountCodeStore(client)


DiscountCodeDependency = Annotated[DiscountCodeStore, Depends(get_discount_code_store)]
