"""Routes recording the outcome of paid orders."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from doudou_pricing.models.orders import FinalizationReport, FinalizedOrder
from doudou_pricing.services.orders.finalizer import FinalizerDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "/finalize",
    response_model=FinalizationReport,
    status_code=status.HTTP_200_OK,
    summary="Update customer history after a paid order",
)
async def finalize_order(
    payload: FinalizedOrder,
    finalizer: FinalizerDependency,
) -> FinalizationReport:
    """Record counters, doudou history and any granted discount.

    Always answers 200: bookkeeping failures are reported in the body and
    never invalidate the order itself.
    """

    logger.info(
        "Finalizing order %s for %s",
        payload.order_id,
        payload.email,
    )
    return await finalizer.finalize(payload)
