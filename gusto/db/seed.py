"""Database seeding helpers."""

import logging

from sqlalchemy.orm import Session

from gusto.core.config import settings
from gusto.models.app_setting import AppSetting
from gusto.services.settings_service import (
    DELIVERY_FEES_KEY,
    DELIVERY_ZONES_KEY,
    FREE_DELIVERY_THRESHOLD_KEY,
    LOYALTY_PROGRAM_KEY,
    PROMO_OFFER_KEY,
    save_setting,
)

logger = logging.getLogger(__name__)

DEFAULT_ORDERING_SETTINGS: dict[str, object] = {
    DELIVERY_ZONES_KEY: [],
    DELIVERY_FEES_KEY: "0",
    FREE_DELIVERY_THRESHOLD_KEY: "1000",
    LOYALTY_PROGRAM_KEY: {"enabled": False, "target_pizzas": 10},
    PROMO_OFFER_KEY: {"enabled": False, "buy_quantity": 3, "get_quantity": 1, "item_type": "pizza"},
}


def ensure_seed_data(session: Session) -> int:
    """Insert missing ordering settings with defaults; existing rows are kept."""
    if not settings.seed_default_settings:
        return 0

    created = 0
    for key, value in DEFAULT_ORDERING_SETTINGS.items():
        if session.get(AppSetting, key) is not None:
            continue
        save_setting(session, key, value)
        created += 1
    session.commit()
    if created:
        logger.info("[BOOTSTRAP] Seeded %s default ordering settings", created)
    return created
