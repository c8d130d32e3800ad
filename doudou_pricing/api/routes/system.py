"""System-level routes such as health checks."""

from __future__ import annotations

from fastapi import APIRouter

from doudou_pricing.config import settings
from doudou_pricing.services.storage.redis_client import RedisDependency

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Hello World endpoint used by smoke tests."""

    return {"message": "Hello World"}


@router.get("/health")
async def health_check(client: RedisDependency) -> dict[str, str]:
    """Health check endpoint with Redis connectivity check."""

    try:
        redis_status = "connected" if await client.ping() else "disconnected"
    except Exception:
        redis_status = "disconnected"

    return {
        "status": "healthy",
        "redis": redis_status,
        "environment": settings.ENVIRONMENT,
    }
