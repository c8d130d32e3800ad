"""Schemas used by the smart pricing API."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator

from doudou_pricing.models.base import CamelModel, Money
from doudou_pricing.models.customer import DoudouRecord
from doudou_pricing.models.shipping import ShippingQuote

DiscountType = Literal["none", "repeat_doudou", "upsell", "loyalty"]


class PricingRequest(CamelModel):
    """Input of the pricing engine once shipping has been resolved."""

    email: str
    pet_name: str
    animal_type: str
    number_of_sheets: int = Field(..., ge=1)
    upsell_ids: list[str] = Field(default_factory=list)
    shipping_cost: Money = Decimal("0")
    photo_hash: str | None = None


class PricingPayload(CamelModel):
    """Incoming payload for POST /pricing."""

    email: str = Field(..., min_length=1)
    pet_name: str = Field(..., min_length=1)
    animal_type: str = Field(..., min_length=1)
    number_of_sheets: int = Field(..., ge=1)
    upsell_ids: list[str] = Field(default_factory=list)
    photo_url: str | None = None

    @field_validator("email", "pet_name", "animal_type")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class DiscountInfo(CamelModel):
    type: DiscountType = "none"
    percentage: int = 0
    amount: Money = Decimal("0")
    reason: str


class PriceBreakdown(CamelModel):
    """Charged amount per component; the discount is already deducted."""

    base_price: Money
    upsell_price: Money
    shipping_price: Money
    discount_amount: Money = Decimal("0")


class PricingResult(CamelModel):
    """Authoritative total for a checkout."""

    original_price: Money
    final_price: Money
    discount: DiscountInfo
    savings_amount: Money = Decimal("0")
    price_breakdown: PriceBreakdown


class PricingResponse(CamelModel):
    """Response body of POST /pricing."""

    success: bool = True
    pricing: PricingResult
    shipping: ShippingQuote
    message: str
    discount_message: str = ""
    savings_percentage: int = 0


class PricingError(CamelModel):
    error: str
    details: str


class AppliedDiscount(CamelModel):
    """Audit record of a discount granted on an order."""

    id: str
    order_id: str
    customer_id: str
    discount_type: DiscountType
    reason: str
    original_price: Money
    discounted_price: Money
    savings_amount: Money
    percentage: int
    doudou_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DiscountHistoryResponse(CamelModel):
    success: bool = True
    history: list[AppliedDiscount] = Field(default_factory=list)
    total_savings: Money = Decimal("0")
    message: str


class Eligibility(CamelModel):
    repeat_doudou: bool = False
    upsell_discount: bool = False
    loyalty_program: bool = False


class EligibilityStats(CamelModel):
    total_orders: int = 0
    total_spent: Money = Decimal("0")
    total_doudous: int = 0


class EligibilityResponse(CamelModel):
    success: bool = True
    is_eligible: bool = False
    eligibility: Eligibility = Field(default_factory=Eligibility)
    stats: EligibilityStats = Field(default_factory=EligibilityStats)
    doudous: list[DoudouRecord] = Field(default_factory=list)
    message: str
