"""Application models package."""

from gusto.models.app_setting import AppSetting
from gusto.models.audit_log import AuditLog
from gusto.models.customer import Address, Customer
from gusto.models.delivery import Delivery, Driver
from gusto.models.order import Order, OrderItem
from gusto.models.product import Product
from gusto.models.service_period import ServicePeriod

__all__ = [
    "Address", "AppSetting", "AuditLog", "Customer", "Delivery", "Driver", "Order", "OrderItem", "Product",
    "ServicePeriod",
]
