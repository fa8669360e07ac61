"""Catalog snapshot reader used by checkout."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from gusto.models.product import Product


def get_product_snapshots(db: Session, product_ids: Iterable[int]) -> dict[int, Product]:
    """Return available products keyed by id; unknown or delisted ids are absent."""
    ids = set(product_ids)
    if not ids:
        return {}
    rows = db.scalars(select(Product).where(Product.id.in_(ids), Product.is_available.is_(True))).all()
    return {product.id: product for product in rows}
