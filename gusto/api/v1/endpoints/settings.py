"""Public ordering configuration for the storefront."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gusto.db.session import get_db
from gusto.schemas.settings import PublicSettingsResponse
from gusto.services.settings_service import get_ordering_config

router = APIRouter()


@router.get("/public", response_model=PublicSettingsResponse)
def public_settings(db: Session = Depends(get_db)) -> PublicSettingsResponse:
    config = get_ordering_config(db)
    return PublicSettingsResponse(
        delivery_zones=list(config.delivery_zones),
        delivery_fees=config.delivery_fee,
        free_delivery_threshold=config.free_delivery_threshold,
        loyalty_program=config.loyalty,
        promo_offer=config.promo,
    )
