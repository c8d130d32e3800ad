"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doudou_pricing.api.routes import include_api_routes
from doudou_pricing.config import settings
from doudou_pricing.services.storage.redis_client import get_redis_client
from doudou_pricing.services.stores.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    if settings.SEED_CATALOG_ON_STARTUP:
        try:
            seeded = await CatalogStore(get_redis_client()).seed_defaults()
            if seeded:
                logger.info("Seeded %d catalog articles on startup", seeded)
        except Exception:
            # Pricing reports the missing catalog per request
            logger.exception("Failed seeding the catalog on startup")
    else:
        logger.info("Skipping catalog seeding")

    yield

    await get_redis_client().aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Sticker Doudou Pricing",
        description="Smart pricing, shipping and discount history service",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
