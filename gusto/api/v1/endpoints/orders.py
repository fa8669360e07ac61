"""Customer checkout and order tracking endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gusto.db.session import get_db
from gusto.models.order import Order
from gusto.schemas.order import (
    AddressRead,
    CustomerOrderSummary,
    CustomerRead,
    DeliveryRead,
    DeliverySummary,
    DriverPublic,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderItemRead,
    OrderPublicStatus,
    OrderTrackingRead,
)
from gusto.services.order_service import customer_orders, elapsed_delivery_minutes, get_order, place_order
from gusto.utils.time import utc_now

router: APIRouter = APIRouter()


def serialize_items(order: Order) -> list[OrderItemRead]:
    return [
        OrderItemRead(
            id=item.id,
            name=item.product_name,
            category=item.category,
            quantity=item.quantity,
            unit_price=item.unit_price,
            kind=item.kind,
            notes=item.notes,
        )
        for item in order.items
    ]


@router.post(
    "",
    response_model=OrderCreateResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_order(payload: OrderCreateRequest, db: Session = Depends(get_db)) -> OrderCreateResponse:
    """Price the cart server-side and record the order."""
    result = place_order(db, payload, now=utc_now())
    order = result.order
    report_loyalty = result.loyalty_enabled or result.ledger.points_deducted > 0
    return OrderCreateResponse(
        order_id=order.id,
        status=order.status,
        service_id=order.service_id,
        subtotal_amount=order.subtotal_amount,
        delivery_fee=order.delivery_fee,
        total_amount=order.total_amount,
        stamps_earned=result.ledger.stamps_earned if report_loyalty else None,
        points_deducted=result.ledger.points_deducted if report_loyalty else None,
    )


@router.get("/customers/{customer_id}/orders", response_model=list[CustomerOrderSummary])
def list_customer_orders(customer_id: int, db: Session = Depends(get_db)) -> list[CustomerOrderSummary]:
    return [
        CustomerOrderSummary(
            id=order.id,
            mode=order.mode,
            status=order.status,
            total_amount=order.total_amount,
            delivery_fee=order.delivery_fee,
            created_at=order.created_at,
            item_count=item_count,
        )
        for order, item_count in customer_orders(db, customer_id)
    ]


@router.get("/{order_id}", response_model=OrderPublicStatus)
def order_public_status(order_id: int, db: Session = Depends(get_db)) -> OrderPublicStatus:
    order = get_order(db, order_id)
    delivery = None
    if order.delivery is not None:
        delivery = DeliverySummary(
            status=order.delivery.status,
            elapsed_delivery_minutes=elapsed_delivery_minutes(order.delivery, utc_now()),
        )
    return OrderPublicStatus(
        id=order.id,
        mode=order.mode,
        status=order.status,
        created_at=order.created_at,
        delivery=delivery,
    )


@router.get("/{order_id}/tracking", response_model=OrderTrackingRead)
def order_tracking(order_id: int, db: Session = Depends(get_db)) -> OrderTrackingRead:
    order = get_order(db, order_id)
    customer = order.customer
    address = order.address
    delivery = order.delivery
    return OrderTrackingRead(
        id=order.id,
        mode=order.mode,
        status=order.status,
        total_amount=order.total_amount,
        delivery_fee=order.delivery_fee,
        comment=order.comment,
        created_at=order.created_at,
        customer=CustomerRead(
            id=customer.id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            phone=customer.phone,
            email=customer.email,
        )
        if customer is not None
        else None,
        address=AddressRead(
            id=address.id,
            street=address.street,
            postal_code=address.postal_code,
            city=address.city,
            additional_info=address.additional_info,
        )
        if address is not None
        else None,
        delivery=DeliveryRead(
            id=delivery.id,
            status=delivery.status,
            assigned_at=delivery.assigned_at,
            started_at=delivery.departed_at,
            delivered_at=delivery.delivered_at,
            driver=DriverPublic(first_name=delivery.driver.first_name) if delivery.driver is not None else None,
        )
        if delivery is not None
        else None,
        items=serialize_items(order),
    )
