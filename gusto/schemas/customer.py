"""Admin customer and driver schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CustomerAdminRead(BaseModel):
    id: int
    phone: str
    first_name: str | None
    last_name: str | None
    email: str | None
    loyalty_points: int
    created_at: datetime
    total_spent: Decimal
    order_count: int


class LoyaltyUpdateRequest(BaseModel):
    loyalty_points: int


class LoyaltyUpdateResponse(BaseModel):
    customer_id: int
    loyalty_points: int


class DriverRead(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class DeliveryAdminRead(BaseModel):
    id: int
    order_id: int
    status: str
    assigned_at: datetime | None
    departed_at: datetime | None
    delivered_at: datetime | None
    driver: DriverRead | None

    model_config = ConfigDict(from_attributes=True)


class DeliveryStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1)


class DriverOrderItem(BaseModel):
    product_name: str
    quantity: int
    unit_price: Decimal
    notes: str | None


class DriverOrderCustomer(BaseModel):
    name: str
    phone: str | None
    address: str
    additional_info: str | None


class DriverOrderRead(BaseModel):
    id: int
    status: str
    total_amount: Decimal
    comment: str | None
    created_at: datetime
    customer: DriverOrderCustomer
    items: list[DriverOrderItem]
    delivery_id: int
    delivery_status: str


class DriverHistoryRow(BaseModel):
    order_id: int
    service_id: int | None
    total_amount: Decimal
    customer_name: str
    address: str | None
    delivered_at: datetime | None


class CustomerProfileRead(BaseModel):
    id: int
    phone: str
    first_name: str | None
    last_name: str | None
    email: str | None
    loyalty_points: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerOrderLine(BaseModel):
    product_name: str
    category: str
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class CustomerOrderDetail(BaseModel):
    id: int
    mode: str
    status: str
    total_amount: Decimal
    created_at: datetime
    items: list[CustomerOrderLine]

    model_config = ConfigDict(from_attributes=True)


class CustomerDetailResponse(BaseModel):
    customer: CustomerProfileRead
    orders: list[CustomerOrderDetail]


class CustomerDeleteResponse(BaseModel):
    success: bool
    orders_dissociated: int


class DriverContact(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: str

    model_config = ConfigDict(from_attributes=True)


class DeliveryDetailRead(BaseModel):
    id: int
    order_id: int
    status: str
    assigned_at: datetime | None
    departed_at: datetime | None
    delivered_at: datetime | None
    driver: DriverContact | None

    model_config = ConfigDict(from_attributes=True)
