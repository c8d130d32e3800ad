"""Customer profile and doudou history schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import Field

from doudou_pricing.models.base import CamelModel, Money


class Customer(CamelModel):
    """Customer identity with its aggregate order counters."""

    id: str
    email: str
    total_orders: int = Field(0, ge=0)
    total_spent: Money = Decimal("0")
    total_savings: Money = Decimal("0")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DoudouRecord(CamelModel):
    """One named stuffed animal ordered by a customer."""

    id: str
    customer_id: str
    pet_name: str
    animal_type: str
    photo_hash: str | None = None
    order_count: int = Field(0, ge=0)
    first_order_id: str | None = None
    first_order_at: datetime | None = None
    last_order_at: datetime | None = None
