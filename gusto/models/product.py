"""Catalog product ORM model (read-only for ordering)."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from gusto.db.base import Base


class Product(Base):
    """Authoritative price and eligibility record for a sellable item."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    is_loyalty_eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_promo_eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
