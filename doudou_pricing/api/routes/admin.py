"""Back-office routes for the catalog, discount codes and the shipping tier table."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from doudou_pricing.models.catalog import Article, ArticleUpdate
from doudou_pricing.models.discount_code import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
)
from doudou_pricing.models.shipping import ShippingTier, ShippingTierUpdate
from doudou_pricing.services.stores.catalog_store import CatalogDependency
from doudou_pricing.services.stores.discount_code_store import (
    DiscountCodeDependency,
    DuplicateDiscountCodeError,
)
from doudou_pricing.services.stores.shipping_store import ShippingDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/products", response_model=list[Article], summary="List catalog articles")
async def list_products(catalog: CatalogDependency) -> list[Article]:
    return await catalog.list_articles()


@router.patch(
    "/products/{article_id}",
    response_model=Article,
    summary="Update a catalog article",
)
async def update_product(
    article_id: str,
    payload: ArticleUpdate,
    catalog: CatalogDependency,
) -> Article:
    article = await catalog.update(article_id, payload)
    if article is None:
        raise HTTPException(status_code=404, detail="Unknown article")
    logger.info("Article %s updated from the back office", article_id)
    return article


@router.get(
    "/shipping",
    response_model=list[ShippingTier],
    summary="Current shipping tier table",
)
async def get_shipping(store: ShippingDependency) -> list[ShippingTier]:
    return await store.get_tiers()


@router.put(
    "/shipping",
    response_model=list[ShippingTier],
    summary="Replace the shipping tier table",
)
async def replace_shipping(
    payload: list[ShippingTier],
    store: ShippingDependency,
) -> list[ShippingTier]:
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one shipping tier is required",
        )
    if len({tier.id for tier in payload}) != len(payload):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Shipping tier ids must be unique",
        )
    return await store.save_tiers(payload)


@router.patch(
    "/shipping/{tier_id}",
    response_model=list[ShippingTier],
    summary="Update a single shipping tier",
)
async def update_shipping_tier(
    tier_id: str,
    payload: ShippingTierUpdate,
    store: ShippingDependency,
) -> list[ShippingTier]:
    tiers = await store.update_tier(tier_id, payload)
    if tiers is None:
        raise HTTPException(status_code=404, detail="Unknown shipping tier")
    logger.info("Shipping tier %s updated", tier_id)
    return tiers


@router.get(
    "/discount-codes",
    response_model=list[DiscountCode],
    summary="List discount codes, newest first",
)
async def list_discount_codes(store: DiscountCodeDependency) -> list[DiscountCode]:
    return await store.list_codes()


@router.post(
    "/discount-codes",
    response_model=DiscountCode,
    status_code=status.HTTP_201_CREATED,
    summary="Create a discount code",
)
async def create_discount_code(
    payload: DiscountCodeCreate,
    store: DiscountCodeDependency,
) -> DiscountCode:
    try:
        return await store.create(payload)
    except DuplicateDiscountCodeError as error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)
        ) from error


@router.patch(
    "/discount-codes/{code_id}",
    response_model=DiscountCode,
    summary="Update a discount code",
)
async def update_discount_code(
    code_id: str,
    payload: DiscountCodeUpdate,
    store: DiscountCodeDependency,
) -> DiscountCode:
    try:
        code = await store.update(code_id, payload)
    except ValueError as error:
        # Duplicate code or an update leaving the code invalid
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)
        ) from error
    if code is None:
        raise HTTPException(status_code=404, detail="Unknown discount code")
    return code


@router.delete(
    "/discount-codes/{code_id}",
    response_model=DiscountCode,
    summary="Deactivate a discount code",
)
async def deactivate_discount_code(
    code_id: str,
    store: DiscountCodeDependency,
) -> DiscountCode:
    code = await store.deactivate(code_id)
    if code is None:
        raise HTTPException(status_code=404, detail="Unknown discount code")
    logger.info("Discount code %s deactivated", code.code)
    return code
