"""Typed ordering configuration parsed from admin-editable settings."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PIZZA_CATEGORIES: tuple[str, ...] = (
    "pizza",
    "classique",
    "signature",
    "gourmande",
    "base crème",
    "base tomate",
)


class DeliveryZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    zip: str
    city: str | None = None

    @field_validator("zip", mode="before")
    @classmethod
    def _zip_as_text(cls, value: object) -> str:
        return str(value).strip()


class ZoneTier(BaseModel):
    """Postal codes sharing one minimum order amount."""

    model_config = ConfigDict(frozen=True)

    min_order: Decimal = Decimal("0")
    zones: tuple[DeliveryZone, ...] = ()


class LoyaltyProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    target_pizzas: int = Field(default=10, ge=1)
    pizza_categories: tuple[str, ...] = DEFAULT_PIZZA_CATEGORIES

    @property
    def reward_cost(self) -> int:
        """Points charged per redeemed reward unit."""
        return self.target_pizzas


class PromoOffer(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    buy_quantity: int = 3
    get_quantity: int = 1
    item_type: str = "pizza"


class OrderingConfig(BaseModel):
    """Immutable snapshot of the policy the engine applies to one checkout."""

    model_config = ConfigDict(frozen=True)

    delivery_zones: tuple[ZoneTier, ...] = ()
    delivery_fee: Decimal = Decimal("0")
    free_delivery_threshold: Decimal = Decimal("1000")
    loyalty: LoyaltyProgram = LoyaltyProgram()
    promo: PromoOffer = PromoOffer()


class PublicSettingsResponse(BaseModel):
    delivery_zones: list[ZoneTier]
    delivery_fees: Decimal
    free_delivery_threshold: Decimal
    loyalty_program: LoyaltyProgram
    promo_offer: PromoOffer
