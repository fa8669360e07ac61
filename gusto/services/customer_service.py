"""Customer and address resolution by natural keys."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from gusto.models.customer import Address, Customer
from gusto.schemas.order import AddressPayload, CustomerPayload

DEFAULT_ADDRESS_LABEL: str = "Home"


def normalize_phone(phone: str) -> str:
    return phone.strip()


def find_customer_by_phone(db: Session, phone: str) -> Customer | None:
    return db.scalar(select(Customer).where(Customer.phone == normalize_phone(phone)).limit(1))


def resolve_customer(db: Session, payload: CustomerPayload) -> Customer:
    """Return the customer for this phone, refreshing contact details or creating it."""
    customer = find_customer_by_phone(db, payload.phone)
    if customer is None:
        customer = Customer(
            phone=normalize_phone(payload.phone),
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            loyalty_points=0,
        )
        db.add(customer)
        db.flush()
        return customer

    if payload.email is not None:
        customer.email = payload.email
    if payload.first_name is not None:
        customer.first_name = payload.first_name
    if payload.last_name is not None:
        customer.last_name = payload.last_name
    return customer


def resolve_address(db: Session, customer: Customer, payload: AddressPayload) -> Address:
    """Reuse an identical address of this customer or create a new one."""
    street = payload.street.strip()
    postal_code = payload.postal_code.strip()
    city = payload.city.strip()
    address = db.scalar(
        select(Address)
        .where(
            Address.customer_id == customer.id,
            Address.street == street,
            Address.postal_code == postal_code,
            Address.city == city,
        )
        .limit(1)
    )
    if address is None:
        address = Address(
            customer_id=customer.id,
            label=payload.label or DEFAULT_ADDRESS_LABEL,
            street=street,
            postal_code=postal_code,
            city=city,
            additional_info=payload.additional_info,
        )
        db.add(address)
        db.flush()
        return address

    if payload.label is not None:
        address.label = payload.label
    if payload.additional_info is not None:
        address.additional_info = payload.additional_info
    return address
