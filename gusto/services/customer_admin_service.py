"""Admin-side customer listing, detail, deletion and loyalty overrides."""

import logging
from decimal import Decimal

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload

from gusto.core.security import Principal
from gusto.models.customer import Address, Customer
from gusto.models.order import Order
from gusto.services.audit_service import log_action
from gusto.services.errors import CustomerNotFound
from gusto.services.loyalty import set_balance

logger = logging.getLogger(__name__)


def _get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if customer is None:
        raise CustomerNotFound(customer_id)
    return customer


def list_customers_with_totals(db: Session) -> list[tuple[Customer, Decimal, int]]:
    total_spent = func.coalesce(func.sum(Order.total_amount), 0)
    rows = db.execute(
        select(Customer, total_spent, func.count(Order.id))
        .outerjoin(Order, Order.customer_id == Customer.id)
        .group_by(Customer.id)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
    ).all()
    return [(customer, Decimal(str(spent or 0)).quantize(Decimal("0.01")), int(count)) for customer, spent, count in rows]


def customer_detail(db: Session, customer_id: int) -> tuple[Customer, list[Order]]:
    """Customer profile with every order and its lines, newest first."""
    customer = _get_customer(db, customer_id)
    orders = list(
        db.scalars(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.customer_id == customer.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()
    )
    return customer, orders


def delete_customer(db: Session, customer_id: int, *, actor: Principal) -> int:
    """Delete a customer and their addresses; past orders are kept but dissociated.

    Returns the number of dissociated orders.
    """
    customer = _get_customer(db, customer_id)
    phone = customer.phone
    address_ids = select(Address.id).where(Address.customer_id == customer.id).scalar_subquery()
    dissociated = db.execute(
        update(Order)
        .where(Order.customer_id == customer.id)
        .values(customer_id=None)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.execute(
        update(Order)
        .where(Order.address_id.in_(address_ids))
        .values(address_id=None)
        .execution_options(synchronize_session=False)
    )
    db.execute(delete(Address).where(Address.customer_id == customer.id).execution_options(synchronize_session=False))
    db.delete(customer)

    log_action(
        db,
        actor=actor,
        action_type="customer_delete",
        before_snapshot={"customer_id": customer_id, "phone": phone, "loyalty_points": customer.loyalty_points},
        after_snapshot={"orders_dissociated": dissociated},
    )
    db.commit()
    logger.info("[CUSTOMER] Customer %s deleted, %s orders dissociated", customer_id, dissociated)
    return dissociated


def override_loyalty(db: Session, customer_id: int, points: int, *, actor: Principal) -> Customer:
    customer = _get_customer(db, customer_id)
    previous = set_balance(customer, points)
    log_action(
        db,
        actor=actor,
        action_type="loyalty_override",
        before_snapshot={"customer_id": customer.id, "loyalty_points": previous},
        after_snapshot={"customer_id": customer.id, "loyalty_points": points},
    )
    db.commit()
    db.refresh(customer)
    return customer
