"""Process-wide Redis connection used by every store."""

from __future__ import annotations

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.config import settings

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


def storage_key(*parts: str) -> str:
    """Build a namespaced key, e.g. ``doudou:customer:42``."""

    return settings.REDIS_KEY_PREFIX + ":".join(parts)


RedisDependency = Annotated[redis.Redis, Depends(get_redis_client)]
