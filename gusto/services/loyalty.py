"""Customer loyalty points ledger.

Points are spent on reward lines and earned as stamps on paid pizza
units. Both movements are applied inside the checkout transaction, after
the order and its items have been flushed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session

from gusto.models.customer import Customer
from gusto.schemas.settings import LoyaltyProgram
from gusto.services.errors import InsufficientLoyaltyBalance, ValidationError
from gusto.services.pricing import PricedLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    customer_id: int
    points_deducted: int
    stamps_earned: int


def is_pizza_category(category: str, loyalty: LoyaltyProgram) -> bool:
    lowered = (category or "").lower()
    return any(pizza_category.lower() in lowered for pizza_category in loyalty.pizza_categories)


def count_stamps(lines: Iterable[PricedLine], loyalty: LoyaltyProgram) -> int:
    """One stamp per paid pizza unit; rewards, promo lines and free lines never earn."""
    if not loyalty.enabled:
        return 0
    return sum(
        line.quantity
        for line in lines
        if line.kind == "paid" and line.unit_price > 0 and is_pizza_category(line.category, loyalty)
    )


def ensure_balance(balance: int, reward_cost: int) -> None:
    if reward_cost > 0 and balance < reward_cost:
        raise InsufficientLoyaltyBalance(balance=balance, required=reward_cost)


def apply_ledger(db: Session, customer: Customer, reward_cost: int, stamps_earned: int) -> LedgerEntry:
    """Debit redeemed points then credit earned stamps on the customer balance.

    The debit is a conditional update so a concurrent checkout that already
    spent the points makes this one fail instead of driving the balance
    negative.
    """
    if reward_cost > 0:
        result = db.execute(
            update(Customer)
            .where(Customer.id == customer.id, Customer.loyalty_points >= reward_cost)
            .values(loyalty_points=Customer.loyalty_points - reward_cost)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.expire(customer, ["loyalty_points"])
            raise InsufficientLoyaltyBalance(balance=customer.loyalty_points, required=reward_cost)

    if stamps_earned > 0:
        db.execute(
            update(Customer)
            .where(Customer.id == customer.id)
            .values(loyalty_points=Customer.loyalty_points + stamps_earned)
            .execution_options(synchronize_session=False)
        )

    db.expire(customer, ["loyalty_points"])
    logger.info(
        "[LOYALTY] customer_id=%s deducted=%s earned=%s",
        customer.id,
        reward_cost,
        stamps_earned,
    )
    return LedgerEntry(customer_id=customer.id, points_deducted=reward_cost, stamps_earned=stamps_earned)


def set_balance(customer: Customer, points: int) -> int:
    """Admin override of a customer's balance."""
    if points < 0:
        raise ValidationError("Loyalty balance cannot be negative.", loyaltyPoints=points)
    previous = customer.loyalty_points
    customer.loyalty_points = points
    logger.info("[LOYALTY] Admin override customer_id=%s %s -> %s", customer.id, previous, points)
    return previous
