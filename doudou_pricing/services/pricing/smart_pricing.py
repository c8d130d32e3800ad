"""Smart pricing: catalog prices plus at most one automatic discount."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated

from fastapi import Depends

from doudou_pricing.config import settings
from doudou_pricing.models.catalog import Article
from doudou_pricing.models.customer import Customer, DoudouRecord
from doudou_pricing.models.pricing import (
    DiscountInfo,
    DiscountType,
    PriceBreakdown,
    PricingRequest,
    PricingResult,
)
from doudou_pricing.services.pricing.pricing_utils import (
    format_price,
    is_price_reasonable,
    round_to_nice_price,
    to_money,
)
from doudou_pricing.services.stores.catalog_store import (
    CatalogDependency,
    CatalogError,
    CatalogStore,
)
from doudou_pricing.services.stores.customer_store import (
    CustomerDependency,
    CustomerStore,
)
from doudou_pricing.services.stores.doudou_store import (
    DoudouDependency,
    DoudouHistoryStore,
)

logger = logging.getLogger(__name__)

NO_DISCOUNT_REASON = "No discount applicable"
FALLBACK_REASON = "Pricing error - standard price applied"
UPSELL_REASON = "Loyalty discount on bonus products"


@dataclass
class DiscountCheck:
    """Outcome of one eligibility rule."""

    applicable: bool
    percentage: int = 0
    reason: str = ""
    record: DoudouRecord | None = None


@dataclass
class CatalogPrices:
    base_price: Decimal
    upsell_price: Decimal
    upsells: list[Article]


class SmartPricingEngine:
    """Compute the payable total of a checkout.

    Rules are evaluated in order and the first applicable one is the only
    one considered:

    1. repeat doudou: the customer already ordered this exact pet name and
       animal type, 30% off the base sheets;
    2. upsell loyalty: a returning customer picked bonus products, 60% off
       the bonus products;
    3. no discount.

    The discounted component is rounded down to a price ending in .90; when
    that saves nothing the checkout is charged full price.
    Lookups that fail only disable the discount. A missing base article
    raises ``CatalogError``; any other failure falls back to flat prices.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        customers: CustomerStore,
        doudous: DoudouHistoryStore,
        *,
        repeat_percentage: int | None = None,
        upsell_percentage: int | None = None,
    ) -> None:
        self._catalog = catalog
        self._customers = customers
        self._doudous = doudous
        self.repeat_percentage = (
            settings.REPEAT_DOUDOU_DISCOUNT_PERCENT
            if repeat_percentage is None
            else repeat_percentage
        )
        self.upsell_percentage = (
            settings.UPSELL_DISCOUNT_PERCENT
            if upsell_percentage is None
            else upsell_percentage
        )

    async def calculate_price(self, request: PricingRequest) -> PricingResult:
        logger.info(
            "Smart pricing for %s - %s",
            request.email,
            request.pet_name,
            extra={
                "sheets": request.number_of_sheets,
                "upsell_ids": request.upsell_ids,
            },
        )
        try:
            result = await self._calculate(request)
        except CatalogError:
            raise
        except Exception:
            logger.exception(
                "Smart pricing failed for %s, using fallback prices", request.email
            )
            return self._fallback(request)

        if not is_price_reasonable(result.final_price, request.number_of_sheets):
            logger.warning(
                "Unusual total %s for %d sheet(s)",
                format_price(result.final_price),
                request.number_of_sheets,
            )
        return result

    async def _calculate(self, request: PricingRequest) -> PricingResult:
        prices = await self._resolve_prices(request)
        shipping = to_money(request.shipping_cost)
        original_price = prices.base_price + prices.upsell_price + shipping

        customer = await self._find_customer(request.email)

        repeat = await self.check_repeat_doudou(customer, request)
        if repeat.applicable:
            discounted_base = round_to_nice_price(
                prices.base_price * (100 - repeat.percentage) / 100
            )
            if discounted_base < prices.base_price:
                logger.info("Repeat doudou discount: %s%%", repeat.percentage)
                return self._build_result(
                    "repeat_doudou",
                    repeat,
                    original_price=original_price,
                    base_price=discounted_base,
                    upsell_price=prices.upsell_price,
                    shipping=shipping,
                    discount_amount=prices.base_price - discounted_base,
                )

        elif prices.upsells:
            upsell = self.check_upsell_discount(customer)
            if upsell.applicable:
                discounted_upsell = round_to_nice_price(
                    prices.upsell_price * (100 - upsell.percentage) / 100
                )
                if discounted_upsell < prices.upsell_price:
                    logger.info("Upsell discount: %s%%", upsell.percentage)
                    return self._build_result(
                        "upsell",
                        upsell,
                        original_price=original_price,
                        base_price=prices.base_price,
                        upsell_price=discounted_upsell,
                        shipping=shipping,
                        discount_amount=prices.upsell_price - discounted_upsell,
                    )

        return PricingResult(
            original_price=original_price,
            final_price=original_price,
            discount=DiscountInfo(reason=NO_DISCOUNT_REASON),
            price_breakdown=PriceBreakdown(
                base_price=prices.base_price,
                upsell_price=prices.upsell_price,
                shipping_price=shipping,
            ),
        )

    async def _resolve_prices(self, request: PricingRequest) -> CatalogPrices:
        try:
            articles = await self._catalog.active_articles()
        except Exception as exc:
            raise CatalogError("Could not read the catalog") from exc

        base_article = next((a for a in articles if a.category == "base"), None)
        if base_article is None:
            raise CatalogError("No active base article in the catalog")

        upsells_by_id = {a.id: a for a in articles if a.category == "upsell"}
        selected = [
            upsells_by_id[upsell_id]
            for upsell_id in request.upsell_ids
            if upsell_id in upsells_by_id
        ]
        skipped = len(request.upsell_ids) - len(selected)
        if skipped:
            logger.debug("Ignored %d unknown or inactive upsell id(s)", skipped)

        return CatalogPrices(
            base_price=to_money(request.number_of_sheets * base_article.sale_price),
            upsell_price=to_money(sum((a.sale_price for a in selected), Decimal("0"))),
            upsells=selected,
        )

    async def _find_customer(self, email: str) -> Customer | None:
        try:
            return await self._customers.find_by_email(email)
        except Exception as exc:
            logger.warning("Customer lookup failed for %s: %s", email, exc)
            return None

    async def check_repeat_doudou(
        self, customer: Customer | None, request: PricingRequest
    ) -> DiscountCheck:
        if customer is None:
            return DiscountCheck(False, reason="New customer")

        try:
            record = await self._doudous.find(
                customer.id, request.pet_name, request.animal_type
            )
        except Exception as exc:
            logger.warning("Doudou history lookup failed for %s: %s", customer.id, exc)
            return DiscountCheck(False, reason="History lookup failed")

        if record is None:
            return DiscountCheck(False, reason="First order for this doudou")

        if (
            request.photo_hash
            and record.photo_hash
            and record.photo_hash != request.photo_hash
        ):
            return DiscountCheck(False, reason="Photo differs from the original doudou")

        order_number = record.order_count + 1
        return DiscountCheck(
            True,
            percentage=self.repeat_percentage,
            reason=(
                f"New sheet for {request.pet_name}: "
                f"this is order {order_number} for {request.pet_name}"
            ),
            record=record,
        )

    def check_upsell_discount(self, customer: Customer | None) -> DiscountCheck:
        if customer is None:
            return DiscountCheck(False, reason="New customer")

        eligible = (
            customer.total_orders >= settings.UPSELL_MIN_ORDERS
            or customer.total_spent >= settings.UPSELL_MIN_SPENT
        )
        if not eligible:
            return DiscountCheck(False, reason="Not yet eligible for upsell discounts")

        return DiscountCheck(
            True,
            percentage=self.upsell_percentage,
            reason=UPSELL_REASON,
        )

    @staticmethod
    def _build_result(
        discount_type: DiscountType,
        check: DiscountCheck,
        *,
        original_price: Decimal,
        base_price: Decimal,
        upsell_price: Decimal,
        shipping: Decimal,
        discount_amount: Decimal,
    ) -> PricingResult:
        final_price = base_price + upsell_price + shipping
        return PricingResult(
            original_price=original_price,
            final_price=final_price,
            discount=DiscountInfo(
                type=discount_type,
                percentage=check.percentage,
                amount=discount_amount,
                reason=check.reason,
            ),
            savings_amount=original_price - final_price,
            price_breakdown=PriceBreakdown(
                base_price=base_price,
                upsell_price=upsell_price,
                shipping_price=shipping,
                discount_amount=discount_amount,
            ),
        )

    @staticmethod
    def _fallback(request: PricingRequest) -> PricingResult:
        base_price = to_money(request.number_of_sheets * settings.FALLBACK_UNIT_PRICE)
        upsell_price = to_money(len(request.upsell_ids) * settings.FALLBACK_ADDON_PRICE)
        shipping = to_money(request.shipping_cost)
        total = base_price + upsell_price + shipping
        return PricingResult(
            original_price=total,
            final_price=total,
            discount=DiscountInfo(reason=FALLBACK_REASON),
            price_breakdown=PriceBreakdown(
                base_price=base_price,
                upsell_price=upsell_price,
                shipping_price=shipping,
            ),
        )


def get_pricing_engine(
    catalog: CatalogDependency,
    customers: CustomerDependency,
    doudous: DoudouDependency,
) -> SmartPricingEngine:
    """FastAPI dependency factory."""

    return SmartPricingEngine(catalog, customers, doudous)


PricingEngineDependency = Annotated[SmartPricingEngine, Depends(get_pricing_engine)]
