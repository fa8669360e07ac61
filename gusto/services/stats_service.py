"""Dashboard counters for the admin home page."""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gusto.models.order import Order
from gusto.utils.time import day_window


def revenue_between(db: Session, start: datetime, end: datetime) -> Decimal:
    total = db.scalar(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.created_at >= start,
            Order.created_at < end,
            Order.status != "cancelled",
        )
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))


def daily_stats(db: Session, now: datetime) -> dict[str, Decimal | int]:
    today_start, today_end = day_window(now)
    yesterday_start = today_start - timedelta(days=1)
    pending = db.scalar(select(func.count(Order.id)).where(Order.status.in_(("pending", "preparing"))))
    return {
        "revenue_today": revenue_between(db, today_start, today_end),
        "revenue_yesterday": revenue_between(db, yesterday_start, today_start),
        "pending_orders": int(pending or 0),
    }
