"""Configuration reader for ordering policy stored in app settings."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from gusto.models.app_setting import AppSetting
from gusto.schemas.settings import LoyaltyProgram, OrderingConfig, PromoOffer, ZoneTier

logger = logging.getLogger(__name__)

DELIVERY_ZONES_KEY: str = "delivery_zones"
LEGACY_MIN_ORDER_KEY: str = "min_order"
DELIVERY_FEES_KEY: str = "delivery_fees"
FREE_DELIVERY_THRESHOLD_KEY: str = "free_delivery_threshold"
LOYALTY_PROGRAM_KEY: str = "loyalty_program"
PROMO_OFFER_KEY: str = "promo_offer"

ORDERING_KEYS: tuple[str, ...] = (
    DELIVERY_ZONES_KEY,
    LEGACY_MIN_ORDER_KEY,
    DELIVERY_FEES_KEY,
    FREE_DELIVERY_THRESHOLD_KEY,
    LOYALTY_PROGRAM_KEY,
    PROMO_OFFER_KEY,
)


def _load_json(key: str, raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("[CONFIG] Setting %s is not valid JSON; using default.", key)
        return None


def _parse_decimal(key: str, raw: str | None, default: Decimal) -> Decimal:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip().strip('"'))
    except InvalidOperation:
        logger.warning("[CONFIG] Setting %s=%r is not a number; using default %s.", key, raw, default)
        return default
    if not value.is_finite():
        logger.warning("[CONFIG] Setting %s=%r is not a finite number; using default %s.", key, raw, default)
        return default
    return value


def parse_delivery_zones(raw: str | None, legacy_min_order: Decimal = Decimal("0")) -> tuple[ZoneTier, ...]:
    """Parse tiered zones; a legacy flat ``[{zip, city}]`` list becomes one tier."""
    data = _load_json(DELIVERY_ZONES_KEY, raw)
    if not isinstance(data, list) or not data:
        return ()

    if all(isinstance(entry, dict) and "zones" not in entry for entry in data):
        data = [{"min_order": str(legacy_min_order), "zones": data}]

    tiers: list[ZoneTier] = []
    for entry in data:
        try:
            tiers.append(ZoneTier.model_validate(entry))
        except SchemaValidationError:
            logger.warning("[CONFIG] Skipping malformed delivery tier: %r", entry)
    return tuple(tiers)


def _parse_model(key: str, raw: str | None, model: type, default: Any) -> Any:
    data = _load_json(key, raw)
    if data is None:
        return default
    try:
        return model.model_validate(data)
    except SchemaValidationError:
        logger.warning("[CONFIG] Setting %s is malformed; using default.", key)
        return default


def parse_ordering_config(values: dict[str, str]) -> OrderingConfig:
    """Build the immutable ordering configuration from raw setting values."""
    defaults = OrderingConfig()
    legacy_min_order = _parse_decimal(LEGACY_MIN_ORDER_KEY, values.get(LEGACY_MIN_ORDER_KEY), Decimal("0"))
    return OrderingConfig(
        delivery_zones=parse_delivery_zones(values.get(DELIVERY_ZONES_KEY), legacy_min_order),
        delivery_fee=_parse_decimal(DELIVERY_FEES_KEY, values.get(DELIVERY_FEES_KEY), defaults.delivery_fee),
        free_delivery_threshold=_parse_decimal(
            FREE_DELIVERY_THRESHOLD_KEY,
            values.get(FREE_DELIVERY_THRESHOLD_KEY),
            defaults.free_delivery_threshold,
        ),
        loyalty=_parse_model(LOYALTY_PROGRAM_KEY, values.get(LOYALTY_PROGRAM_KEY), LoyaltyProgram, defaults.loyalty),
        promo=_parse_model(PROMO_OFFER_KEY, values.get(PROMO_OFFER_KEY), PromoOffer, defaults.promo),
    )


def get_ordering_config(db: Session) -> OrderingConfig:
    """Read ordering policy rows from DB and parse them with fallback defaults."""
    rows: list[AppSetting] = db.query(AppSetting).filter(AppSetting.key.in_(ORDERING_KEYS)).all()
    values: dict[str, str] = {row.key: row.value for row in rows}
    return parse_ordering_config(values)


def save_setting(db: Session, key: str, value: Any) -> None:
    """Persist one setting, serialising non-string values as JSON."""
    stored: str = value if isinstance(value, str) else json.dumps(value, default=str)
    setting: AppSetting | None = db.get(AppSetting, key)
    if setting is None:
        db.add(AppSetting(key=key, value=stored))
    else:
        setting.value = stored
