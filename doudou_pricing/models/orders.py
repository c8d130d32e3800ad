"""Schemas for recording a finalized order."""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from doudou_pricing.models.base import CamelModel, Money
from doudou_pricing.models.pricing import DiscountInfo


class FinalizedOrder(CamelModel):
    """A paid order whose outcome must be reflected in the customer history."""

    order_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    pet_name: str = Field(..., min_length=1)
    animal_type: str = Field(..., min_length=1)
    photo_url: str | None = None
    original_price: Money = Field(..., ge=0)
    final_price: Money = Field(..., ge=0)
    discount: DiscountInfo | None = None

    @property
    def savings_amount(self) -> Decimal:
        return self.original_price - self.final_price


class FinalizationReport(CamelModel):
    """Outcome of each best-effort write performed for a finalized order."""

    success: bool
    order_id: str
    customer_id: str | None = None
    profile_updated: bool = False
    doudou_registered: bool = False
    discount_recorded: bool = False
    already_finalized: bool = False
