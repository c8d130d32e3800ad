"""Redis-backed catalog of purchasable articles."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from doudou_pricing.models.catalog import DEFAULT_ARTICLES, Article, ArticleUpdate
from doudou_pricing.services.storage.redis_client import RedisDependency, storage_key

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Raised when the catalog cannot provide a price for the base article."""


class CatalogStore:
    """Articles stored as JSON documents in a single Redis hash."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._key = storage_key("catalog", "articles")

    async def list_articles(self) -> list[Article]:
        raw = await self._client.hvals(self._key)
        articles = [Article.model_validate_json(item) for item in raw]
        return sorted(articles, key=lambda article: (article.category, article.id))

    async def active_articles(self) -> list[Article]:
        return [article for article in await self.list_articles() if article.active]

    async def get(self, article_id: str) -> Article | None:
        raw = await self._client.hget(self._key, article_id)
        if not raw:
            return None
        return Article.model_validate_json(raw)

    async def upsert(self, article: Article) -> Article:
        await self._client.hset(self._key, article.id, article.model_dump_json())
        logger.info("Stored article %s (%s)", article.id, article.category)
        return article

    async def update(self, article_id: str, changes: ArticleUpdate) -> Article | None:
        """Apply a partial update, returning None when the article is unknown."""

        current = await self.get(article_id)
        if current is None:
            return None
        updates = changes.model_dump(exclude_unset=True, exclude_none=True)
        updates["updated_at"] = datetime.now(UTC)
        updated = current.model_copy(update=updates)
        return await self.upsert(Article.model_validate(updated.model_dump()))

    async def seed_defaults(self) -> int:
        """Insert the default catalog when the store is empty."""

        if await self._client.hlen(self._key):
            return 0
        for data in DEFAULT_ARTICLES:
            await self.upsert(Article.model_validate(data))
        logger.info("Seeded catalog with %d default articles", len(DEFAULT_ARTICLES))
        return len(DEFAULT_ARTICLES)


def get_catalog_store(client: RedisDependency) -> CatalogStore:
    """FastAPI dependency factory."""

    return CatalogStore(client)


CatalogDependency = Annotated[CatalogStore, Depends(get_catalog_store)]
