"""Order status machine driven by kitchen, admin and driver actions."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from gusto.core.security import Principal
from gusto.models.delivery import DELIVERY_STATUSES, Delivery, Driver
from gusto.models.order import Order
from gusto.services.audit_service import log_action
from gusto.services.errors import (
    DeliveryNotFound,
    DriverNotFound,
    InvalidStatus,
    NotAuthorizedForDelivery,
    OrderNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

ORDER_STATUSES: list[str] = [
    "pending",
    "preparing",
    "ready",
    "assigned",
    "en_route",
    "delivered",
    "cancelled",
    "not_delivered",
]
ACTIVE_STATUSES: tuple[str, ...] = ("pending", "preparing", "ready", "assigned", "en_route")
TERMINAL_STATUSES: frozenset[str] = frozenset({"delivered", "cancelled", "not_delivered"})


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def set_status(order: Order, new_status: str, now: datetime) -> None:
    """Set status and stamp the change time."""
    order.status = new_status
    order.status_updated_at = now


def _get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return order


def update_status(db: Session, order_id: int, new_status: str, *, actor: Principal, now: datetime) -> Order:
    """Admin/kitchen status overwrite; only the status whitelist is enforced."""
    if new_status not in ORDER_STATUSES:
        raise InvalidStatus(new_status)
    order = _get_order(db, order_id)
    previous = order.status
    set_status(order, new_status, now)
    if new_status == "cancelled" and order.delivery is not None:
        order.delivery.status = "cancelled"

    log_action(
        db,
        actor=actor,
        action_type="order_status",
        order_id=order.id,
        before_snapshot={"status": previous},
        after_snapshot={"status": new_status},
    )
    db.commit()
    db.refresh(order)
    logger.info("[ORDER] Order %s status %s -> %s", order.id, previous, new_status)
    return order


def assign_driver(db: Session, order_id: int, driver_id: int, *, actor: Principal, now: datetime) -> Delivery:
    """Create or reassign the delivery record and flip the order to ``assigned``."""
    order = _get_order(db, order_id)
    if order.mode != "delivery":
        raise ValidationError("Only delivery orders can be assigned to a driver.", orderId=order.id)
    if is_terminal(order.status):
        raise ValidationError(f"Order is already {order.status}.", orderId=order.id)

    driver = db.get(Driver, driver_id)
    if driver is None or not driver.is_active:
        raise DriverNotFound(driver_id)

    delivery = db.scalar(select(Delivery).where(Delivery.order_id == order.id).with_for_update())
    previous_driver_id = delivery.driver_id if delivery is not None else None
    if delivery is None:
        delivery = Delivery(order_id=order.id)
        db.add(delivery)
    delivery.driver_id = driver.id
    delivery.status = "assigned"
    delivery.assigned_at = now
    delivery.departed_at = None
    delivery.delivered_at = None
    set_status(order, "assigned", now)

    log_action(
        db,
        actor=actor,
        action_type="assign_driver",
        order_id=order.id,
        before_snapshot={"driver_id": previous_driver_id},
        after_snapshot={"driver_id": driver.id},
    )
    db.commit()
    db.refresh(delivery)
    logger.info("[DRIVER] Order %s assigned to driver %s", order.id, driver.id)
    return delivery


def _owned_delivery(db: Session, order_id: int, driver_id: int) -> Delivery:
    delivery = db.scalar(select(Delivery).where(Delivery.order_id == order_id).with_for_update())
    if delivery is None or delivery.driver_id != driver_id:
        logger.warning("[DRIVER] Driver %s acted on order %s not assigned to them", driver_id, order_id)
        raise NotAuthorizedForDelivery(order_id)
    return delivery


def _ensure_deliverable(order: Order, delivery: Delivery) -> None:
    if is_terminal(order.status) or delivery.status == "cancelled":
        logger.warning("[DRIVER] Order %s is %s; driver action ignored", order.id, order.status)
        raise ValidationError(f"Order is already {order.status}.", orderId=order.id, status=order.status)


def start_delivery(db: Session, order_id: int, *, driver: Principal, now: datetime) -> Order:
    """Driver leaves with the order."""
    delivery = _owned_delivery(db, order_id, driver.subject_id)
    order = delivery.order
    _ensure_deliverable(order, delivery)
    set_status(order, "en_route", now)
    delivery.status = "en_route"
    delivery.departed_at = now

    log_action(db, actor=driver, action_type="delivery_start", order_id=order.id)
    db.commit()
    db.refresh(order)
    return order


def complete_delivery(db: Session, order_id: int, *, driver: Principal, now: datetime) -> Order:
    """Driver hands the order over."""
    delivery = _owned_delivery(db, order_id, driver.subject_id)
    order = delivery.order
    _ensure_deliverable(order, delivery)
    set_status(order, "delivered", now)
    delivery.status = "delivered"
    delivery.delivered_at = now

    log_action(db, actor=driver, action_type="delivery_complete", order_id=order.id)
    db.commit()
    db.refresh(order)
    return order


def update_delivery_status(
    db: Session,
    delivery_id: int,
    new_status: str,
    *,
    actor: Principal,
    now: datetime,
) -> Delivery:
    """Admin override of a delivery record, keeping the order status in sync."""
    if new_status not in DELIVERY_STATUSES:
        raise InvalidStatus(new_status)
    delivery = db.get(Delivery, delivery_id)
    if delivery is None:
        raise DeliveryNotFound(delivery_id)

    previous = delivery.status
    delivery.status = new_status
    if new_status == "assigned" and delivery.assigned_at is None:
        delivery.assigned_at = now
    elif new_status == "en_route" and delivery.departed_at is None:
        delivery.departed_at = now
    elif new_status == "delivered" and delivery.delivered_at is None:
        delivery.delivered_at = now

    if new_status in {"en_route", "delivered"}:
        set_status(delivery.order, new_status, now)

    log_action(
        db,
        actor=actor,
        action_type="delivery_status",
        order_id=delivery.order_id,
        before_snapshot={"status": previous},
        after_snapshot={"status": new_status},
    )
    db.commit()
    db.refresh(delivery)
    return delivery
