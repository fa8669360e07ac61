"""Domain errors raised by the ordering engine.

Every error carries the HTTP status the API should answer with and a
``context`` dict of values the client can display (minimum order, point
balance, offending postal code, ...). The API layer renders them as
``{"error": message, "code": ClassName, **context}``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class OrderingError(Exception):
    """Base class for user-facing ordering failures."""

    status_code: int = 400

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": type(self).__name__}
        for key, value in self.context.items():
            payload[key] = float(value) if isinstance(value, Decimal) else value
        return payload


class ValidationError(OrderingError):
    """Missing or inconsistent request fields."""


class ProductNotFound(OrderingError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found or no longer available.", productId=product_id)


class RewardNotEligible(OrderingError):
    def __init__(self, product_id: int, product_name: str) -> None:
        super().__init__(f'"{product_name}" cannot be redeemed as a loyalty reward.', productId=product_id)


class UndeliverableZone(OrderingError):
    def __init__(self, postal_code: str) -> None:
        super().__init__(f"We do not deliver to postal code {postal_code}.", postalCode=postal_code)


class MinimumOrderNotMet(OrderingError):
    def __init__(self, minimum: Decimal, subtotal: Decimal) -> None:
        super().__init__(
            f"Minimum order for your zone is {minimum:.2f} (current total: {subtotal:.2f}).",
            minimum=minimum,
            subtotal=subtotal,
        )


class InsufficientLoyaltyBalance(OrderingError):
    def __init__(self, balance: int, required: int) -> None:
        super().__init__(
            f"Insufficient balance: {balance} points available, {required} required.",
            balance=balance,
            required=required,
        )


class ServiceAlreadyOpen(OrderingError):
    def __init__(self) -> None:
        super().__init__("A service is already open.")


class NoServiceOpen(OrderingError):
    def __init__(self) -> None:
        super().__init__("No open service to close.")


class InvalidStatus(OrderingError):
    def __init__(self, status: str) -> None:
        super().__init__(f"Unsupported status: {status}", status=status)


class NotAuthorizedForDelivery(OrderingError):
    status_code = 403

    def __init__(self, order_id: int) -> None:
        super().__init__("This delivery is not assigned to you.", orderId=order_id)


class NotFoundError(OrderingError):
    status_code = 404


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: int) -> None:
        super().__init__("Order not found.", orderId=order_id)


class DriverNotFound(NotFoundError):
    def __init__(self, driver_id: int) -> None:
        super().__init__("Driver not found or inactive.", driverId=driver_id)


class CustomerNotFound(NotFoundError):
    def __init__(self, customer_id: int) -> None:
        super().__init__("Customer not found.", customerId=customer_id)


class ServiceNotFound(NotFoundError):
    def __init__(self, service_id: int) -> None:
        super().__init__("Service not found.", serviceId=service_id)


class DeliveryNotFound(NotFoundError):
    def __init__(self, delivery_id: int) -> None:
        super().__init__("Delivery not found.", deliveryId=delivery_id)


class NoDeliveryForOrder(NotFoundError):
    def __init__(self, order_id: int) -> None:
        super().__init__("No delivery for this order.", orderId=order_id)
