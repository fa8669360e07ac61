"""Admin endpoints for the kitchen board, dispatch and customers."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gusto.api.v1.endpoints.orders import serialize_items
from gusto.core.security import Principal, require_admin
from gusto.db.session import get_db
from gusto.models.order import Order
from gusto.schemas.customer import (
    CustomerAdminRead,
    CustomerDeleteResponse,
    CustomerDetailResponse,
    CustomerOrderDetail,
    CustomerProfileRead,
    DeliveryAdminRead,
    DeliveryDetailRead,
    DeliveryStatusUpdateRequest,
    LoyaltyUpdateRequest,
    LoyaltyUpdateResponse,
)
from gusto.schemas.order import (
    AdminOrderCustomer,
    AdminOrderDriver,
    AdminOrderRead,
    AssignDriverRequest,
    OrderStatusUpdateRequest,
)
from gusto.schemas.service import DailyStatsResponse
from gusto.services.customer_admin_service import (
    customer_detail,
    delete_customer,
    list_customers_with_totals,
    override_loyalty,
)
from gusto.services.order_service import delivery_for_order, kitchen_board
from gusto.services.order_status import assign_driver, update_delivery_status, update_status
from gusto.services.stats_service import daily_stats
from gusto.utils.time import utc_now

router = APIRouter()


def _format_address(order: Order) -> str | None:
    if order.address is None:
        return None
    return f"{order.address.street}, {order.address.postal_code} {order.address.city}"


def _serialize_board_row(order: Order) -> AdminOrderRead:
    customer = order.customer
    driver = order.delivery.driver if order.delivery is not None else None
    return AdminOrderRead(
        id=order.id,
        status=order.status,
        mode=order.mode,
        total_amount=order.total_amount,
        comment=order.comment,
        created_at=order.created_at,
        service_id=order.service_id,
        customer=AdminOrderCustomer(
            first_name=customer.first_name if customer else None,
            last_name=customer.last_name if customer else None,
            phone=customer.phone if customer else None,
            address=_format_address(order),
        ),
        driver=AdminOrderDriver(id=driver.id, first_name=driver.first_name) if driver is not None else None,
        items=serialize_items(order),
    )


@router.get("/orders", response_model=list[AdminOrderRead])
def admin_orders(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)) -> list[AdminOrderRead]:
    return [_serialize_board_row(order) for order in kitchen_board(db)]


@router.patch("/orders/{order_id}/assign-driver", response_model=DeliveryAdminRead)
def admin_assign_driver(
    order_id: int,
    payload: AssignDriverRequest,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> DeliveryAdminRead:
    delivery = assign_driver(db, order_id, payload.driver_id, actor=admin, now=utc_now())
    return DeliveryAdminRead.model_validate(delivery)


@router.get("/orders/{order_id}/delivery", response_model=DeliveryDetailRead)
def admin_order_delivery(
    order_id: int,
    db: Session = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> DeliveryDetailRead:
    return DeliveryDetailRead.model_validate(delivery_for_order(db, order_id))


@router.patch("/orders/{order_id}/status")
def admin_update_order_status(
    order_id: int,
    payload: OrderStatusUpdateRequest,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> dict[str, int | str | bool]:
    order = update_status(db, order_id, payload.status, actor=admin, now=utc_now())
    return {"ok": True, "id": order.id, "status": order.status}


@router.patch("/deliveries/{delivery_id}/status", response_model=DeliveryAdminRead)
def admin_update_delivery_status(
    delivery_id: int,
    payload: DeliveryStatusUpdateRequest,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> DeliveryAdminRead:
    delivery = update_delivery_status(db, delivery_id, payload.status, actor=admin, now=utc_now())
    return DeliveryAdminRead.model_validate(delivery)


@router.get("/customers", response_model=list[CustomerAdminRead])
def admin_customers(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)) -> list[CustomerAdminRead]:
    return [
        CustomerAdminRead(
            id=customer.id,
            phone=customer.phone,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            loyalty_points=customer.loyalty_points,
            created_at=customer.created_at,
            total_spent=total_spent,
            order_count=order_count,
        )
        for customer, total_spent, order_count in list_customers_with_totals(db)
    ]


@router.get("/customers/{customer_id}", response_model=CustomerDetailResponse)
def admin_customer_detail(
    customer_id: int,
    db: Session = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> CustomerDetailResponse:
    customer, orders = customer_detail(db, customer_id)
    return CustomerDetailResponse(
        customer=CustomerProfileRead.model_validate(customer),
        orders=[CustomerOrderDetail.model_validate(order) for order in orders],
    )


@router.delete("/customers/{customer_id}", response_model=CustomerDeleteResponse)
def admin_delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> CustomerDeleteResponse:
    dissociated = delete_customer(db, customer_id, actor=admin)
    return CustomerDeleteResponse(success=True, orders_dissociated=dissociated)


@router.patch("/customers/{customer_id}/loyalty", response_model=LoyaltyUpdateResponse)
def admin_update_loyalty(
    customer_id: int,
    payload: LoyaltyUpdateRequest,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> LoyaltyUpdateResponse:
    customer = override_loyalty(db, customer_id, payload.loyalty_points, actor=admin)
    return LoyaltyUpdateResponse(customer_id=customer.id, loyalty_points=customer.loyalty_points)


@router.get("/stats", response_model=DailyStatsResponse)
def admin_stats(db: Session = Depends(get_db), _admin: Principal = Depends(require_admin)) -> DailyStatsResponse:
    return DailyStatsResponse(**daily_stats(db, utc_now()))
