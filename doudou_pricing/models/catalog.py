"""Catalog article schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import Field

from doudou_pricing.models.base import CamelModel, Money

ArticleCategory = Literal["base", "upsell", "pack"]


class Article(CamelModel):
    """A purchasable unit of the sticker catalog."""

    id: str = Field(..., min_length=1, description="Unique identifier of the article")
    name: str
    description: str = ""
    category: ArticleCategory
    original_price: Money = Field(..., ge=0, description="Reference price before promotion")
    sale_price: Money = Field(..., ge=0, description="Current sale price")
    active: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ArticleUpdate(CamelModel):
    """Partial update sent by the back office."""

    name: str | None = None
    description: str | None = None
    original_price: Money | None = Field(None, ge=0)
    sale_price: Money | None = Field(None, ge=0)
    active: bool | None = None


DEFAULT_ARTICLES: list[dict] = [
    {
        "id": "planche-base",
        "name": "Base sticker sheet",
        "description": "One sheet of personalised stickers featuring your doudou",
        "category": "base",
        "original_price": "12.90",
        "sale_price": "12.90",
        "active": True,
    },
    {
        "id": "planche-bonus",
        "name": "Bonus sheet",
        "description": "An extra sheet at an exceptional price",
        "category": "upsell",
        "original_price": "12.90",
        "sale_price": "4.90",
        "active": True,
    },
    {
        "id": "photo-premium",
        "name": "Premium doudou photo",
        "description": "13x18 photo print delivered with a frame",
        "category": "upsell",
        "original_price": "39.90",
        "sale_price": "29.90",
        "active": False,
    },
    {
        "id": "livre-histoire",
        "name": "Personalised story book",
        "description": "The story of your doudou in 8 to 10 illustrated pages",
        "category": "upsell",
        "original_price": "34.90",
        "sale_price": "24.90",
        "active": False,
    },
]
