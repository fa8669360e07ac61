"""Schema exports."""

from gusto.schemas.order import (
    CartLine,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderPublicStatus,
    OrderTrackingRead,
)
from gusto.schemas.service import ServiceCloseResponse, ServiceOpenResponse, ServicePeriodRead, ServiceStatusResponse
from gusto.schemas.settings import LoyaltyProgram, OrderingConfig, PromoOffer, ZoneTier

__all__ = [
    "CartLine",
    "OrderCreateRequest",
    "OrderCreateResponse",
    "OrderPublicStatus",
    "OrderTrackingRead",
    "ServiceCloseResponse",
    "ServiceOpenResponse",
    "ServicePeriodRead",
    "ServiceStatusResponse",
    "LoyaltyProgram",
    "OrderingConfig",
    "PromoOffer",
    "ZoneTier",
]
