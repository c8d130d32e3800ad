"""Routes exposing the smart pricing engine and discount history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from doudou_pricing.config import settings
from doudou_pricing.models.pricing import (
    DiscountHistoryResponse,
    Eligibility,
    EligibilityResponse,
    EligibilityStats,
    PricingError,
    PricingPayload,
    PricingRequest,
    PricingResponse,
)
from doudou_pricing.services.pricing.pricing_utils import (
    discount_message,
    format_price,
    generate_photo_hash,
    savings_percentage,
)
from doudou_pricing.services.pricing.shipping_rules import calculate_shipping
from doudou_pricing.services.pricing.smart_pricing import PricingEngineDependency
from doudou_pricing.services.stores.catalog_store import CatalogError
from doudou_pricing.services.stores.customer_store import CustomerDependency
from doudou_pricing.services.stores.discount_ledger import LedgerDependency
from doudou_pricing.services.stores.doudou_store import DoudouDependency
from doudou_pricing.services.stores.shipping_store import ShippingDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post(
    "",
    response_model=PricingResponse,
    responses={500: {"model": PricingError}},
    summary="Price a checkout with automatic discounts",
)
async def calculate_pricing(
    payload: PricingPayload,
    engine: PricingEngineDependency,
    shipping_store: ShippingDependency,
) -> PricingResponse | JSONResponse:
    """Resolve shipping from the selected add-ons, then run the pricing engine."""

    logger.info(
        "Pricing request received",
        extra={
            "email": payload.email,
            "pet_name": payload.pet_name,
            "sheets": payload.number_of_sheets,
            "has_photo": bool(payload.photo_url),
        },
    )

    tiers = await shipping_store.get_tiers()
    shipping = calculate_shipping(payload.upsell_ids, tiers)
    photo_hash = generate_photo_hash(payload.photo_url) if payload.photo_url else None

    request = PricingRequest(
        email=payload.email,
        pet_name=payload.pet_name,
        animal_type=payload.animal_type,
        number_of_sheets=payload.number_of_sheets,
        upsell_ids=payload.upsell_ids,
        shipping_cost=shipping.cost,
        photo_hash=photo_hash,
    )

    try:
        pricing = await engine.calculate_price(request)
    except CatalogError as error:
        logger.error("Pricing aborted, catalog unusable: %s", error)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=PricingError(
                error="Could not calculate the price",
                details=str(error),
            ).model_dump(),
        )

    logger.info(
        "Priced %s at %s (was %s)",
        payload.pet_name,
        format_price(pricing.final_price),
        format_price(pricing.original_price),
    )

    if pricing.discount.type != "none":
        message = f"{pricing.discount.percentage}% discount applied!"
    else:
        message = "Standard price applied"

    return PricingResponse(
        pricing=pricing,
        shipping=shipping,
        message=message,
        discount_message=discount_message(pricing.discount, payload.pet_name),
        savings_percentage=savings_percentage(
            pricing.original_price, pricing.final_price
        ),
    )


@router.get(
    "",
    response_model=None,
    summary="Discount history or discount eligibility of a customer",
)
async def pricing_queries(
    customers: CustomerDependency,
    doudous: DoudouDependency,
    ledger: LedgerDependency,
    email: str = Query(..., min_length=1),
    action: str = Query(..., description="history or eligibility"),
) -> DiscountHistoryResponse | EligibilityResponse:
    if action not in ("history", "eligibility"):
        raise HTTPException(status_code=400, detail="Unknown action")

    try:
        customer = await customers.find_by_email(email)
    except RedisError as exc:
        logger.warning("Customer lookup failed for %s: %s", email, exc)
        customer = None

    if action == "history":
        if customer is None:
            return DiscountHistoryResponse(message="No history found")
        history = await ledger.history(customer.id)
        total = await ledger.total_savings(customer.id)
        return DiscountHistoryResponse(
            history=history,
            total_savings=total,
            message=f"{len(history)} discounts found",
        )

    if customer is None:
        return EligibilityResponse(
            message="New customer - no discount available",
        )
    try:
        records = await doudous.list_for_customer(customer.id)
    except RedisError as exc:
        logger.warning("Doudou history unavailable for %s: %s", customer.id, exc)
        records = []
    return EligibilityResponse(
        is_eligible=customer.total_orders > 0,
        eligibility=Eligibility(
            repeat_doudou=bool(records),
            upsell_discount=(
                customer.total_orders >= settings.UPSELL_MIN_ORDERS
                or customer.total_spent >= settings.UPSELL_MIN_SPENT
            ),
            loyalty_program=(
                customer.total_orders >= settings.LOYALTY_PROGRAM_MIN_ORDERS
            ),
        ),
        stats=EligibilityStats(
            total_orders=customer.total_orders,
            total_spent=customer.total_spent,
            total_doudous=len(records),
        ),
        doudous=records,
        message="Eligibility computed",
    )
