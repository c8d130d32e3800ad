"""Helpers shared by the pricing engine and the pricing API."""

from __future__ import annotations

import hashlib
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from doudou_pricing.models.pricing import DiscountInfo

CENT = Decimal("0.01")
NICE_ENDING = Decimal("0.90")
MIN_REASONABLE_PER_SHEET = Decimal("5")
MAX_REASONABLE_PER_SHEET = Decimal("50")


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Quantize an amount to cents."""

    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_nice_price(price: Decimal) -> Decimal:
    """Round down to the closest price ending in .90 (17.43 -> 16.90).

    A price already ending in .90 to .99 keeps its euro part; the result is
    never below 0.90.
    """
    tenths = (price * 10).to_integral_value(rounding=ROUND_FLOOR) / 10
    euros = tenths.to_integral_value(rounding=ROUND_FLOOR)
    cents = ((tenths - euros) * 100).to_integral_value(rounding=ROUND_HALF_UP)

    if cents >= 90:
        return to_money(euros + NICE_ENDING)
    return to_money(max(euros - 1 + NICE_ENDING, NICE_ENDING))


def format_price(price: Decimal) -> str:
    """Format for display in French notation, e.g. ``12,90€``."""

    return f"{to_money(price):.2f}".replace(".", ",") + "€"


def savings_percentage(original_price: Decimal, final_price: Decimal) -> int:
    if original_price <= 0:
        return 0
    ratio = (original_price - final_price) / original_price * 100
    return int(ratio.to_integral_value(rounding=ROUND_HALF_UP))


def discount_message(discount: DiscountInfo, pet_name: str) -> str:
    """Customer-facing sentence announcing the applied discount."""

    if discount.type == "repeat_doudou":
        return (
            f"Hooray! {discount.percentage}% off a new sticker sheet of {pet_name}!"
        )
    if discount.type == "upsell":
        return (
            f"As a returning customer you get {discount.percentage}% off "
            "the bonus products!"
        )
    if discount.type == "loyalty":
        return f"Loyalty discount of {discount.percentage}% applied to your order!"
    return ""


def is_price_reasonable(price: Decimal, number_of_sheets: int = 1) -> bool:
    minimum = number_of_sheets * MIN_REASONABLE_PER_SHEET
    maximum = number_of_sheets * MAX_REASONABLE_PER_SHEET
    return minimum <= price <= maximum


def generate_photo_hash(photo_url: str) -> str:
    """Fingerprint of the reference photo, used to spot a different doudou."""

    return hashlib.sha256(photo_url.encode("utf-8")).hexdigest()[:16]
