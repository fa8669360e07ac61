"""API v1 router composition."""

from fastapi import APIRouter

from gusto.api.v1.endpoints import admin, driver, orders, service, settings

api_router: APIRouter = APIRouter()
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(service.router, prefix="/admin/service", tags=["service"])
api_router.include_router(service.public_router, prefix="/service", tags=["service"])
api_router.include_router(driver.router, prefix="/driver", tags=["driver"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
