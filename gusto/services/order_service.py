"""Checkout orchestration and order read models.

Checkout runs every validation (pricing, delivery policy, loyalty balance)
before touching the database, then writes customer, address, order, items
and the loyalty movements in a single transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from gusto.models.delivery import Delivery
from gusto.models.order import Order, OrderItem
from gusto.models.service_period import ServicePeriod
from gusto.schemas.order import OrderCreateRequest
from gusto.services.catalog_service import get_product_snapshots
from gusto.services.customer_service import find_customer_by_phone, resolve_address, resolve_customer
from gusto.services.delivery_policy import validate_delivery
from gusto.services.errors import NoDeliveryForOrder, OrderNotFound, ValidationError
from gusto.services.loyalty import LedgerEntry, apply_ledger, count_stamps, ensure_balance
from gusto.services.pricing import ZERO, price_cart
from gusto.services.service_period_service import get_open_service
from gusto.services.settings_service import get_ordering_config
from gusto.utils.time import as_utc, day_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    ledger: LedgerEntry
    loyalty_enabled: bool


def place_order(db: Session, payload: OrderCreateRequest, *, now: datetime) -> CheckoutResult:
    """Validate and persist one checkout."""
    if payload.mode == "delivery" and payload.address is None:
        raise ValidationError("An address is required for delivery orders.")

    config = get_ordering_config(db)
    products = get_product_snapshots(db, [line.product_id for line in payload.items])
    cart = price_cart(payload.items, products, config.loyalty)

    delivery_fee: Decimal = ZERO
    if payload.mode == "delivery":
        delivery_fee = validate_delivery(payload.address.postal_code, cart.subtotal, config)

    known_customer = find_customer_by_phone(db, payload.customer.phone)
    ensure_balance(known_customer.loyalty_points if known_customer else 0, cart.reward_cost)
    stamps_earned = count_stamps(cart.lines, config.loyalty)
    service: ServicePeriod | None = get_open_service(db)

    try:
        customer = resolve_customer(db, payload.customer)
        address = None
        if payload.mode == "delivery":
            address = resolve_address(db, customer, payload.address)

        order = Order(
            customer_id=customer.id,
            address_id=address.id if address is not None else None,
            service_id=service.id if service is not None else None,
            mode=payload.mode,
            status="pending",
            subtotal_amount=cart.subtotal,
            delivery_fee=delivery_fee,
            total_amount=max(ZERO, cart.subtotal + delivery_fee),
            comment=payload.comment or None,
            created_at=now,
            status_updated_at=now,
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.name,
                category=line.category,
                unit_price=line.unit_price,
                quantity=line.quantity,
                kind=line.kind,
                notes=line.notes,
            )
            for line in cart.lines
        ]
        db.add(order)
        db.flush()

        ledger = apply_ledger(db, customer, cart.reward_cost, stamps_earned)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        "[ORDER] Order %s created: mode=%s total=%s service_id=%s",
        order.id,
        order.mode,
        order.total_amount,
        order.service_id,
    )
    return CheckoutResult(order=order, ledger=ledger, loyalty_enabled=config.loyalty.enabled)


def get_order(db: Session, order_id: int) -> Order:
    order = db.scalar(
        select(Order)
        .options(
            joinedload(Order.customer),
            joinedload(Order.address),
            joinedload(Order.delivery).joinedload(Delivery.driver),
            selectinload(Order.items),
        )
        .where(Order.id == order_id)
    )
    if order is None:
        raise OrderNotFound(order_id)
    return order


def elapsed_delivery_minutes(delivery: Delivery | None, now: datetime) -> int | None:
    """Minutes since departure while the delivery is on the road."""
    if delivery is None or delivery.status != "en_route" or delivery.departed_at is None:
        return None
    return int((as_utc(now) - as_utc(delivery.departed_at)).total_seconds() // 60)


def customer_orders(db: Session, customer_id: int) -> list[tuple[Order, int]]:
    """Orders of one customer with their line counts, newest first."""
    item_count = func.count(OrderItem.id).label("item_count")
    rows = db.execute(
        select(Order, item_count)
        .outerjoin(OrderItem, OrderItem.order_id == Order.id)
        .where(Order.customer_id == customer_id)
        .group_by(Order.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    return [(order, int(count)) for order, count in rows]


def kitchen_board(db: Session) -> list[Order]:
    """Orders of the open service plus unscoped ones from its opening day; empty while closed."""
    service = get_open_service(db)
    if service is None:
        return []
    day_start, _day_end = day_window(service.start_time)
    return list(
        db.scalars(
            select(Order)
            .options(
                joinedload(Order.customer),
                joinedload(Order.address),
                joinedload(Order.delivery).joinedload(Delivery.driver),
                selectinload(Order.items),
            )
            .where((Order.service_id == service.id) | (Order.service_id.is_(None) & (Order.created_at >= day_start)))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).unique().all()
    )


def driver_live_deliveries(db: Session, driver_id: int) -> list[Delivery]:
    """Deliveries the driver still has to run in the open service."""
    return list(
        db.scalars(
            select(Delivery)
            .join(Order, Order.id == Delivery.order_id)
            .join(ServicePeriod, ServicePeriod.id == Order.service_id)
            .options(
                joinedload(Delivery.order).joinedload(Order.customer),
                joinedload(Delivery.order).joinedload(Order.address),
                joinedload(Delivery.order).selectinload(Order.items),
            )
            .where(
                Delivery.driver_id == driver_id,
                ServicePeriod.status == "open",
                Order.status.in_(("assigned", "en_route")),
            )
            .order_by(Order.created_at.desc())
        ).unique().all()
    )


def driver_history(db: Session, driver_id: int) -> list[Delivery]:
    return list(
        db.scalars(
            select(Delivery)
            .join(Order, Order.id == Delivery.order_id)
            .options(
                joinedload(Delivery.order).joinedload(Order.customer),
                joinedload(Delivery.order).joinedload(Order.address),
            )
            .where(Delivery.driver_id == driver_id, Delivery.status == "delivered")
            .order_by(Delivery.delivered_at.desc())
        ).unique().all()
    )


def delivery_for_order(db: Session, order_id: int) -> Delivery:
    delivery = db.scalar(
        select(Delivery).options(joinedload(Delivery.driver)).where(Delivery.order_id == order_id)
    )
    if delivery is None:
        raise NoDeliveryForOrder(order_id)
    return delivery
