"""Pytest configuration and fixtures for the pricing service."""

from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from doudou_pricing.models.catalog import Article
from doudou_pricing.services.pricing.smart_pricing import SmartPricingEngine
from doudou_pricing.services.storage.redis_client import get_redis_client
from doudou_pricing.services.stores.catalog_store import CatalogStore
from doudou_pricing.services.stores.customer_store import CustomerStore
from doudou_pricing.services.stores.discount_code_store import DiscountCodeStore
from doudou_pricing.services.stores.discount_ledger import DiscountLedger
from doudou_pricing.services.stores.doudou_store import DoudouHistoryStore
from doudou_pricing.services.stores.order_registry import ProcessedOrderRegistry
from doudou_pricing.services.stores.shipping_store import ShippingSettingsStore

TEST_ARTICLES = [
    Article(
        id="planche-base",
        name="Base sticker sheet",
        category="base",
        original_price=Decimal("12.90"),
        sale_price=Decimal("12.90"),
    ),
    Article(
        id="stickers-xl",
        name="XL sticker sheet",
        category="upsell",
        original_price=Decimal("14.90"),
        sale_price=Decimal("9.90"),
    ),
    Article(
        id="photo-premium",
        name="Premium doudou photo",
        category="upsell",
        original_price=Decimal("39.90"),
        sale_price=Decimal("29.90"),
    ),
    Article(
        id="livre-histoire",
        name="Personalised story book",
        category="upsell",
        original_price=Decimal("34.90"),
        sale_price=Decimal("24.90"),
        active=False,
    ),
]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from doudou_pricing.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    await client.flushdb()
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def catalog(redis_client):
    """Catalog holding a 12.90 base sheet and a few upsells."""
    store = CatalogStore(redis_client)
    for article in TEST_ARTICLES:
        await store.upsert(article)
    return store


@pytest.fixture()
def customers(redis_client):
    return CustomerStore(redis_client)


@pytest.fixture()
def doudous(redis_client):
    return DoudouHistoryStore(redis_client)


@pytest.fixture()
def ledger(redis_client):
    return DiscountLedger(redis_client)


@pytest.fixture()
def discount_codes(redis_client):
    return DiscountCodeStore(redis_client)


@pytest.fixture()
def order_registry(redis_client):
    return ProcessedOrderRegistry(redis_client)


@pytest.fixture()
def shipping_store(redis_client):
    return ShippingSettingsStore(redis_client)


@pytest.fixture()
def engine(catalog, customers, doudous):
    return SmartPricingEngine(catalog, customers, doudous)


@pytest_asyncio.fixture()
async def client(redis_client):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from doudou_pricing.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
