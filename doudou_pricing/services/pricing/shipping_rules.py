"""Flat shipping price chosen from a configurable tier table."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from doudou_pricing.models.shipping import DEFAULT_SHIPPING_TIERS, ShippingQuote, ShippingTier

logger = logging.getLogger(__name__)


def default_shipping_tiers() -> list[ShippingTier]:
    return [ShippingTier.model_validate(data) for data in DEFAULT_SHIPPING_TIERS]


def calculate_shipping(
    selected_ids: Iterable[str],
    tiers: Sequence[ShippingTier] | None = None,
) -> ShippingQuote:
    """Return the shipping price for the selected add-on ids.

    The highest-priority active tier triggered by any selected id wins.
    Without a match the active tier that has no triggers applies. Unknown
    ids never match anything.
    """
    active = [tier for tier in (tiers or ()) if tier.active]
    if not active:
        active = default_shipping_tiers()

    selected = set(selected_ids)
    triggered = [tier for tier in active if selected.intersection(tier.trigger_ids)]
    if triggered:
        chosen = max(triggered, key=lambda tier: tier.priority)
    else:
        defaults = [tier for tier in active if not tier.trigger_ids]
        if defaults:
            chosen = min(defaults, key=lambda tier: tier.priority)
        else:
            logger.warning("Shipping table has no default tier, using the cheapest")
            chosen = min(active, key=lambda tier: tier.price)

    return ShippingQuote(
        cost=chosen.price,
        tier=chosen.id,
        reason=chosen.description or chosen.name,
    )
