"""Service period lifecycle: open, live status, close and history.

Only one period may be open at a time. Besides the read-then-write check
below, the ``uq_service_periods_single_open`` partial unique index rejects
a second open row, so two concurrent ``open`` calls cannot both succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from gusto.core.config import settings
from gusto.core.security import Principal
from gusto.models.order import Order, OrderItem
from gusto.models.service_period import ServicePeriod
from gusto.services.audit_service import log_action
from gusto.services.errors import NoServiceOpen, ServiceAlreadyOpen, ServiceNotFound
from gusto.services.order_status import ACTIVE_STATUSES
from gusto.utils.time import day_window

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
EXCLUDED_FROM_LIVE: tuple[str, ...] = ("cancelled",)
EXCLUDED_FROM_FINAL: tuple[str, ...] = ("cancelled", "not_delivered")


@dataclass(frozen=True)
class ServiceTotals:
    order_count: int
    revenue: Decimal

    @property
    def average_ticket(self) -> Decimal:
        if self.order_count == 0:
            return Decimal("0.00")
        return (self.revenue / self.order_count).quantize(CENTS, rounding=ROUND_HALF_UP)


def _money(value: object) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_open_service(db: Session) -> ServicePeriod | None:
    return db.scalar(select(ServicePeriod).where(ServicePeriod.status == "open").limit(1))


def service_totals(db: Session, service_id: int, excluded_statuses: tuple[str, ...]) -> ServiceTotals:
    count, revenue = db.execute(
        select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.service_id == service_id,
            Order.status.not_in(excluded_statuses),
        )
    ).one()
    return ServiceTotals(order_count=int(count or 0), revenue=_money(revenue))


def product_sales(db: Session, service_id: int, excluded_statuses: tuple[str, ...]) -> list[tuple[str, int, Decimal]]:
    """Per-product quantity and revenue for a period, best sellers first."""
    quantity = func.sum(OrderItem.quantity).label("quantity")
    rows = db.execute(
        select(OrderItem.product_name, quantity, func.sum(OrderItem.unit_price * OrderItem.quantity))
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.service_id == service_id, Order.status.not_in(excluded_statuses))
        .group_by(OrderItem.product_name)
        .order_by(quantity.desc(), OrderItem.product_name.asc())
    ).all()
    return [(name, int(qty or 0), _money(revenue)) for name, qty, revenue in rows]


def top_item_label(db: Session, service_id: int) -> str | None:
    sales = product_sales(db, service_id, EXCLUDED_FROM_FINAL)
    if not sales:
        return None
    name, qty, _revenue = sales[0]
    return f"{name} ({qty})"


def open_service(db: Session, *, actor: Principal, now: datetime) -> tuple[ServicePeriod, int]:
    """Open a new period and attach today's unscoped orders to it."""
    if get_open_service(db) is not None:
        raise ServiceAlreadyOpen()

    service = ServicePeriod(start_time=now, status="open")
    db.add(service)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ServiceAlreadyOpen() from exc

    day_start, day_end = day_window(now)
    attached = db.execute(
        update(Order)
        .where(
            Order.service_id.is_(None),
            Order.created_at >= day_start,
            Order.created_at < day_end,
            Order.status != "cancelled",
        )
        .values(service_id=service.id)
        .execution_options(synchronize_session=False)
    ).rowcount

    log_action(db, actor=actor, action_type="service_open", service_id=service.id, after_snapshot={"attached_orders": attached})
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ServiceAlreadyOpen() from exc
    db.refresh(service)
    logger.info("[SERVICE] Service %s opened, %s same-day orders attached", service.id, attached)
    return service, attached


def live_status(db: Session) -> tuple[ServicePeriod | None, ServiceTotals | None]:
    service = get_open_service(db)
    if service is None:
        return None, None
    return service, service_totals(db, service.id, EXCLUDED_FROM_LIVE)


def close_service(db: Session, *, actor: Principal, now: datetime) -> tuple[ServicePeriod, int]:
    """Force-close stale orders, snapshot final stats and close the period."""
    service = db.scalar(select(ServicePeriod).where(ServicePeriod.status == "open").limit(1).with_for_update())
    if service is None:
        raise NoServiceOpen()

    forced = db.execute(
        update(Order)
        .where(Order.service_id == service.id, Order.status.in_(ACTIVE_STATUSES))
        .values(status="not_delivered", status_updated_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount

    totals = service_totals(db, service.id, EXCLUDED_FROM_FINAL)
    service.total_revenue = totals.revenue
    service.order_count = totals.order_count
    service.average_ticket = totals.average_ticket
    service.top_item = top_item_label(db, service.id)
    service.status = "closed"
    service.end_time = now

    log_action(
        db,
        actor=actor,
        action_type="service_close",
        service_id=service.id,
        after_snapshot={
            "forced_not_delivered": forced,
            "order_count": totals.order_count,
            "total_revenue": str(totals.revenue),
        },
    )
    db.commit()
    db.refresh(service)
    logger.info(
        "[SERVICE] Service %s closed: orders=%s revenue=%s forced_not_delivered=%s",
        service.id,
        totals.order_count,
        totals.revenue,
        forced,
    )
    return service, forced


def closed_history(db: Session, limit: int | None = None) -> list[ServicePeriod]:
    return list(
        db.scalars(
            select(ServicePeriod)
            .where(ServicePeriod.status == "closed")
            .order_by(ServicePeriod.start_time.desc(), ServicePeriod.id.desc())
            .limit(limit or settings.history_limit)
        ).all()
    )


def service_detail(db: Session, service_id: int) -> tuple[ServicePeriod, list[tuple[str, int, Decimal]], list[Order]]:
    service = db.get(ServicePeriod, service_id)
    if service is None:
        raise ServiceNotFound(service_id)
    orders = list(
        db.scalars(
            select(Order)
            .options(joinedload(Order.customer))
            .where(Order.service_id == service_id)
            .order_by(Order.created_at.desc())
        ).all()
    )
    return service, product_sales(db, service_id, EXCLUDED_FROM_FINAL), orders
