"""Routes validating and redeeming promotional discount codes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from doudou_pricing.models.discount_code import (
    AppliedDiscountCode,
    DiscountCodeCheck,
    DiscountCodeCheckResponse,
    DiscountCodeUsage,
)
from doudou_pricing.services.pricing.discount_codes import (
    DiscountCodeError,
    evaluate_discount_code,
)
from doudou_pricing.services.pricing.pricing_utils import format_price
from doudou_pricing.services.stores.discount_code_store import DiscountCodeDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discount-codes", tags=["discount-codes"])


@router.post(
    "/validate",
    response_model=DiscountCodeCheckResponse,
    summary="Check a discount code against a checkout total",
)
async def validate_discount_code(
    payload: DiscountCodeCheck,
    store: DiscountCodeDependency,
) -> DiscountCodeCheckResponse:
    code = await store.find_active(payload.code)
    if code is None:
        logger.info("Unknown discount code %s", payload.code)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid discount code",
        )

    try:
        amount = evaluate_discount_code(code, payload.total_amount)
    except DiscountCodeError as error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(error),
        ) from error

    logger.info("Discount code %s accepted: %s off", code.code, format_price(amount))
    return DiscountCodeCheckResponse(
        discount_code=AppliedDiscountCode(
            id=code.id,
            code=code.code,
            description=code.description,
            discount_type=code.discount_type,
            discount_value=code.discount_value,
            discount_amount=amount,
        )
    )


@router.put(
    "/{code_id}/use",
    response_model=DiscountCodeUsage,
    summary="Count one redemption after a successful payment",
)
async def use_discount_code(
    code_id: str,
    store: DiscountCodeDependency,
) -> DiscountCodeUsage:
    code = await store.increment_usage(code_id)
    if code is None:
        raise HTTPException(status_code=404, detail="Unknown discount code")
    return DiscountCodeUsage(code=code.code, used_count=code.used_count)
