"""Service period endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gusto.core.security import Principal, require_admin
from gusto.db.session import get_db
from gusto.schemas.service import (
    ProductSales,
    PublicServiceStatus,
    ServiceCloseResponse,
    ServiceDetailResponse,
    ServiceOpenResponse,
    ServiceOrderRow,
    ServicePeriodRead,
    ServiceStats,
    ServiceStatusResponse,
)
from gusto.services.service_period_service import (
    close_service,
    closed_history,
    get_open_service,
    live_status,
    open_service,
    service_detail,
)
from gusto.utils.time import utc_now

router = APIRouter()
public_router = APIRouter()


@router.post("/open", response_model=ServiceOpenResponse)
def admin_open_service(db: Session = Depends(get_db), admin: Principal = Depends(require_admin)) -> ServiceOpenResponse:
    service, attached = open_service(db, actor=admin, now=utc_now())
    return ServiceOpenResponse(service=ServicePeriodRead.model_validate(service), attached_orders=attached)


@router.post("/close", response_model=ServiceCloseResponse)
def admin_close_service(db: Session = Depends(get_db), admin: Principal = Depends(require_admin)) -> ServiceCloseResponse:
    service, forced = close_service(db, actor=admin, now=utc_now())
    return ServiceCloseResponse(
        service=ServicePeriodRead.model_validate(service),
        stats=ServiceStats(
            total_revenue=service.total_revenue,
            order_count=service.order_count,
            average_ticket=service.average_ticket,
            top_item=service.top_item,
        ),
        forced_not_delivered=forced,
    )


@router.get("/status", response_model=ServiceStatusResponse)
def admin_service_status(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)) -> ServiceStatusResponse:
    service, totals = live_status(db)
    if service is None or totals is None:
        return ServiceStatusResponse(is_open=False)
    return ServiceStatusResponse(
        is_open=True,
        service=ServicePeriodRead.model_validate(service),
        current_orders=totals.order_count,
        current_revenue=totals.revenue,
    )


@router.get("/history", response_model=list[ServicePeriodRead])
def admin_service_history(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)) -> list[ServicePeriodRead]:
    return [ServicePeriodRead.model_validate(service) for service in closed_history(db)]


@router.get("/history/{service_id}", response_model=ServiceDetailResponse)
def admin_service_detail(
    service_id: int,
    db: Session = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> ServiceDetailResponse:
    service, sales, orders = service_detail(db, service_id)
    return ServiceDetailResponse(
        service=ServicePeriodRead.model_validate(service),
        top_items=[ProductSales(name=name, quantity=qty, total_revenue=revenue) for name, qty, revenue in sales],
        orders=[
            ServiceOrderRow(
                id=order.id,
                created_at=order.created_at,
                total_amount=order.total_amount,
                status=order.status,
                mode=order.mode,
                first_name=order.customer.first_name if order.customer else None,
                last_name=order.customer.last_name if order.customer else None,
                phone=order.customer.phone if order.customer else None,
            )
            for order in orders
        ],
    )


@public_router.get("/status", response_model=PublicServiceStatus)
def public_service_status(db: Session = Depends(get_db)) -> PublicServiceStatus:
    return PublicServiceStatus(is_open=get_open_service(db) is not None)
