"""Shipping tier schemas."""

from __future__ import annotations

from pydantic import Field

from doudou_pricing.models.base import CamelModel, Money


class ShippingTier(CamelModel):
    """A flat shipping price applied when any of its trigger ids is selected.

    A tier without trigger ids is the default tier for carts that hit no
    other tier.
    """

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    price: Money = Field(..., ge=0)
    trigger_ids: list[str] = Field(default_factory=list)
    priority: int = 0
    active: bool = True


class ShippingTierUpdate(CamelModel):
    """Partial update of a single tier."""

    name: str | None = None
    description: str | None = None
    price: Money | None = Field(None, ge=0)
    trigger_ids: list[str] | None = None
    priority: int | None = None
    active: bool | None = None


class ShippingQuote(CamelModel):
    """Shipping price chosen for a cart."""

    cost: Money
    tier: str
    reason: str


DEFAULT_SHIPPING_TIERS: list[dict] = [
    {
        "id": "tarif1",
        "name": "Standard shipping",
        "description": "Stickers only (base sheet alone or with a bonus sheet)",
        "price": "3.50",
        "trigger_ids": [],
        "priority": 0,
    },
    {
        "id": "tarif2",
        "name": "Premium shipping",
        "description": "Includes a photo or a book (extra physical items)",
        "price": "5.80",
        "trigger_ids": ["photo-premium", "livre-histoire"],
        "priority": 10,
    },
]
