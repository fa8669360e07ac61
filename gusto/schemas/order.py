"""Order API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    """Single cart entry; any client price field is ignored."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    quantity: int = Field(default=1, ge=1)
    is_reward: bool = Field(default=False, alias="isReward")
    is_free: bool = Field(default=False, alias="isFree")
    notes: str | None = None


class CustomerPayload(BaseModel):
    phone: str = Field(min_length=1)
    first_name: str | None = Field(default=None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: str | None = Field(default=None, validation_alias=AliasChoices("last_name", "lastName"))
    email: str | None = None


class AddressPayload(BaseModel):
    street: str = Field(min_length=1)
    postal_code: str = Field(min_length=1, validation_alias=AliasChoices("postal_code", "postalCode"))
    city: str = Field(min_length=1)
    label: str | None = None
    additional_info: str | None = Field(
        default=None,
        validation_alias=AliasChoices("additional_info", "additionalInfo"),
    )


class OrderCreateRequest(BaseModel):
    """Checkout payload sent by the storefront."""

    customer: CustomerPayload
    address: AddressPayload | None = None
    mode: Literal["pickup", "delivery"]
    items: list[CartLine] = Field(min_length=1)
    comment: str | None = None


class OrderCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(alias="orderId")
    status: str
    service_id: int | None = Field(default=None, alias="serviceId")
    subtotal_amount: Decimal = Field(alias="subtotalAmount")
    delivery_fee: Decimal = Field(alias="deliveryFee")
    total_amount: Decimal = Field(alias="totalAmount")
    stamps_earned: int | None = Field(default=None, alias="stampsEarned")
    points_deducted: int | None = Field(default=None, alias="pointsDeducted")


class DeliverySummary(BaseModel):
    status: str
    elapsed_delivery_minutes: int | None = None


class OrderPublicStatus(BaseModel):
    """Minimal tracking view, safe to expose by order id."""

    id: int
    mode: str
    status: str
    created_at: datetime
    delivery: DeliverySummary | None = None


class OrderItemRead(BaseModel):
    id: int
    name: str
    category: str
    quantity: int
    unit_price: Decimal
    kind: str
    notes: str | None = None


class CustomerRead(BaseModel):
    id: int
    first_name: str | None
    last_name: str | None
    phone: str
    email: str | None


class AddressRead(BaseModel):
    id: int
    street: str
    postal_code: str
    city: str
    additional_info: str | None = None


class DriverPublic(BaseModel):
    first_name: str


class DeliveryRead(BaseModel):
    id: int
    status: str
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    delivered_at: datetime | None = None
    driver: DriverPublic | None = None


class OrderTrackingRead(BaseModel):
    """Full order detail for the tracking page."""

    id: int
    mode: str
    status: str
    total_amount: Decimal
    delivery_fee: Decimal
    comment: str | None
    created_at: datetime
    customer: CustomerRead | None
    address: AddressRead | None
    delivery: DeliveryRead | None
    items: list[OrderItemRead]


class CustomerOrderSummary(BaseModel):
    id: int
    mode: str
    status: str
    total_amount: Decimal
    delivery_fee: Decimal
    created_at: datetime
    item_count: int


class OrderStatusUpdateRequest(BaseModel):
    status: str


class AssignDriverRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_id: int = Field(alias="driverId")


class AdminOrderCustomer(BaseModel):
    first_name: str | None
    last_name: str | None
    phone: str | None
    address: str | None


class AdminOrderDriver(BaseModel):
    id: int
    first_name: str


class AdminOrderRead(BaseModel):
    """Kitchen board row."""

    id: int
    status: str
    mode: str
    total_amount: Decimal
    comment: str | None
    created_at: datetime
    service_id: int | None
    customer: AdminOrderCustomer
    driver: AdminOrderDriver | None
    items: list[OrderItemRead]
