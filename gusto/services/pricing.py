"""Server-side cart pricing.

The storefront cart is untrusted: every line is re-priced from the catalog
and classified as a paid line, a promo-free line (``isFree``) or a loyalty
reward (``isReward``). Client-submitted prices never reach this module.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from gusto.models.product import Product
from gusto.schemas.order import CartLine
from gusto.schemas.settings import LoyaltyProgram
from gusto.services.errors import ProductNotFound, RewardNotEligible

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    name: str
    category: str
    unit_price: Decimal
    quantity: int
    kind: str
    notes: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PricedCart:
    lines: tuple[PricedLine, ...]
    subtotal: Decimal
    reward_cost: int


def price_line(line: CartLine, product: Product | None, loyalty: LoyaltyProgram) -> tuple[PricedLine, int]:
    """Price a single cart line, returning it with its loyalty point cost."""
    if product is None:
        raise ProductNotFound(line.product_id)

    unit_price: Decimal = Decimal(product.price)
    kind = "paid"
    point_cost = 0
    if line.is_reward:
        if not product.is_loyalty_eligible:
            raise RewardNotEligible(product.id, product.name)
        unit_price = ZERO
        kind = "reward"
        point_cost = line.quantity * loyalty.reward_cost
    elif line.is_free:
        # Promo threshold (buy N get 1) is checked by the storefront only.
        unit_price = ZERO
        kind = "promo"

    priced = PricedLine(
        product_id=product.id,
        name=product.name,
        category=product.category or "unknown",
        unit_price=unit_price,
        quantity=line.quantity,
        kind=kind,
        notes=line.notes,
    )
    return priced, point_cost


def price_cart(
    lines: Iterable[CartLine],
    products: Mapping[int, Product],
    loyalty: LoyaltyProgram,
) -> PricedCart:
    """Re-price the whole cart; any unknown product fails the entire order."""
    priced_lines: list[PricedLine] = []
    subtotal = ZERO
    reward_cost = 0
    for line in lines:
        priced, point_cost = price_line(line, products.get(line.product_id), loyalty)
        priced_lines.append(priced)
        subtotal += priced.line_total
        reward_cost += point_cost
    return PricedCart(lines=tuple(priced_lines), subtotal=subtotal, reward_cost=reward_cost)
