"""Delivery zone and minimum order policy."""

from __future__ import annotations

from decimal import Decimal

from gusto.schemas.settings import OrderingConfig, ZoneTier
from gusto.services.errors import MinimumOrderNotMet, UndeliverableZone

ZERO = Decimal("0.00")


def find_zone_tier(tiers: tuple[ZoneTier, ...], postal_code: str) -> ZoneTier | None:
    """Return the first tier listing the postal code; tier order is significant."""
    wanted = str(postal_code).strip()
    for tier in tiers:
        if any(zone.zip == wanted for zone in tier.zones):
            return tier
    return None


def compute_delivery_fee(subtotal: Decimal, config: OrderingConfig) -> Decimal:
    """Flat fee, waived once the subtotal reaches the free-delivery threshold."""
    if subtotal >= config.free_delivery_threshold:
        return ZERO
    return Decimal(config.delivery_fee)


def validate_delivery(postal_code: str, subtotal: Decimal, config: OrderingConfig) -> Decimal:
    """Check zone and minimum order, returning the delivery fee to charge."""
    tier = find_zone_tier(config.delivery_zones, postal_code)
    if tier is None:
        raise UndeliverableZone(str(postal_code).strip())
    if subtotal < tier.min_order:
        raise MinimumOrderNotMet(minimum=tier.min_order, subtotal=subtotal)
    return compute_delivery_fee(subtotal, config)
