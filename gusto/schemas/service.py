"""Service period schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ServicePeriodRead(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime | None
    status: str
    total_revenue: Decimal
    order_count: int
    average_ticket: Decimal
    top_item: str | None

    model_config = ConfigDict(from_attributes=True)


class ServiceOpenResponse(BaseModel):
    service: ServicePeriodRead
    attached_orders: int


class ServiceStatusResponse(BaseModel):
    is_open: bool
    service: ServicePeriodRead | None = None
    current_orders: int | None = None
    current_revenue: Decimal | None = None


class ServiceStats(BaseModel):
    total_revenue: Decimal
    order_count: int
    average_ticket: Decimal
    top_item: str | None


class ServiceCloseResponse(BaseModel):
    service: ServicePeriodRead
    stats: ServiceStats
    forced_not_delivered: int


class ServiceOrderRow(BaseModel):
    id: int
    created_at: datetime
    total_amount: Decimal
    status: str
    mode: str
    first_name: str | None
    last_name: str | None
    phone: str | None


class ProductSales(BaseModel):
    name: str
    quantity: int
    total_revenue: Decimal


class ServiceDetailResponse(BaseModel):
    service: ServicePeriodRead
    top_items: list[ProductSales]
    orders: list[ServiceOrderRow]


class PublicServiceStatus(BaseModel):
    is_open: bool


class DailyStatsResponse(BaseModel):
    revenue_today: Decimal
    revenue_yesterday: Decimal
    pending_orders: int
