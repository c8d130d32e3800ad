"""Eligibility and amount of a promotional discount code."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from doudou_pricing.models.discount_code import DiscountCode
from doudou_pricing.services.pricing.pricing_utils import format_price, to_money


class DiscountCodeError(ValueError):
    """A known code that cannot be used for this checkout."""


def evaluate_discount_code(
    code: DiscountCode,
    total_amount: Decimal,
    now: datetime | None = None,
) -> Decimal:
    """Return the amount the code takes off ``total_amount``.

    Raises ``DiscountCodeError`` when the code is outside its validity
    window, exhausted, or the total is below its minimum. The amount never
    exceeds the total.
    """
    now = now or datetime.now(UTC)

    if now < code.valid_from:
        raise DiscountCodeError("This discount code is not valid yet")
    if code.valid_until is not None and now > code.valid_until:
        raise DiscountCodeError("This discount code has expired")
    if code.usage_limit is not None and code.used_count >= code.usage_limit:
        raise DiscountCodeError("This discount code has reached its usage limit")
    if total_amount < code.minimum_amount:
        raise DiscountCodeError(
            f"Minimum amount required: {format_price(code.minimum_amount)}"
        )

    if code.discount_type == "percentage":
        amount = to_money(total_amount * code.discount_value / 100)
    else:
        amount = to_money(code.discount_value)
    return min(amount, to_money(total_amount))
