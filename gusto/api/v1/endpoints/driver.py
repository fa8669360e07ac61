"""Driver endpoints; every action is limited to the caller's own deliveries."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gusto.core.security import Principal, require_driver
from gusto.db.session import get_db
from gusto.models.customer import Address, Customer
from gusto.schemas.customer import DriverHistoryRow, DriverOrderCustomer, DriverOrderItem, DriverOrderRead
from gusto.services.order_service import driver_history, driver_live_deliveries
from gusto.services.order_status import complete_delivery, start_delivery
from gusto.utils.time import utc_now

router = APIRouter()


def _full_name(customer: Customer | None) -> str:
    if customer is None:
        return ""
    return " ".join(part for part in (customer.first_name, customer.last_name) if part)


def _one_line_address(address: Address | None) -> str | None:
    if address is None:
        return None
    return f"{address.street}, {address.postal_code} {address.city}"


@router.get("/my-orders", response_model=list[DriverOrderRead])
def my_orders(db: Session = Depends(get_db), driver: Principal = Depends(require_driver)) -> list[DriverOrderRead]:
    rows: list[DriverOrderRead] = []
    for delivery in driver_live_deliveries(db, driver.subject_id):
        order = delivery.order
        rows.append(
            DriverOrderRead(
                id=order.id,
                status=order.status,
                total_amount=order.total_amount,
                comment=order.comment,
                created_at=order.created_at,
                customer=DriverOrderCustomer(
                    name=_full_name(order.customer),
                    phone=order.customer.phone if order.customer else None,
                    address=_one_line_address(order.address) or "Unknown address",
                    additional_info=order.address.additional_info if order.address else None,
                ),
                items=[
                    DriverOrderItem(
                        product_name=item.product_name,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        notes=item.notes,
                    )
                    for item in order.items
                ],
                delivery_id=delivery.id,
                delivery_status=delivery.status,
            )
        )
    return rows


@router.get("/history", response_model=list[DriverHistoryRow])
def my_history(db: Session = Depends(get_db), driver: Principal = Depends(require_driver)) -> list[DriverHistoryRow]:
    return [
        DriverHistoryRow(
            order_id=delivery.order_id,
            service_id=delivery.order.service_id,
            total_amount=delivery.order.total_amount,
            customer_name=_full_name(delivery.order.customer),
            address=_one_line_address(delivery.order.address),
            delivered_at=delivery.delivered_at,
        )
        for delivery in driver_history(db, driver.subject_id)
    ]


@router.patch("/{order_id}/start")
def start(order_id: int, db: Session = Depends(get_db), driver: Principal = Depends(require_driver)) -> dict[str, bool | str]:
    order = start_delivery(db, order_id, driver=driver, now=utc_now())
    return {"success": True, "status": order.status}


@router.patch("/{order_id}/complete")
def complete(order_id: int, db: Session = Depends(get_db), driver: Principal = Depends(require_driver)) -> dict[str, bool | str]:
    order = complete_delivery(db, order_id, driver=driver, now=utc_now())
    return {"success": True, "status": order.status}
