"""Product repository - Database operations for the catalog"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ... import models
from ..value_objects import Money
from .aggregate import Product


def to_domain(row: models.Product) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        sku=row.sku,
        price=Money.create(row.price_amount, row.price_currency),
        stock_quantity=row.stock_quantity,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply(row: models.Product, product: Product) -> None:
    row.name = product.name
    row.description = product.description
    row.sku = product.sku
    row.price_amount = product.price.amount
    row.price_currency = product.price.currency.value
    row.stock_quantity = product.stock_quantity
    row.is_active = product.is_active


class ProductRepository:
    """Repository for product database operations"""

    @staticmethod
    def get_by_id(db: Session, product_id: str) -> Optional[Product]:
        row = db.get(models.Product, product_id)
        return to_domain(row) if row else None

    @staticmethod
    def get_many(db: Session, product_ids: Iterable[str]) -> list[Product]:
        ids = list(set(product_ids))
        if not ids:
            return []
        rows = db.query(models.Product).filter(models.Product.id.in_(ids)).all()
        return [to_domain(r) for r in rows]

    @staticmethod
    def get_by_sku(db: Session, sku: str) -> Optional[Product]:
        row = db.query(models.Product).filter(models.Product.sku == sku).first()
        return to_domain(row) if row else None

    @staticmethod
    def search(
        db: Session,
        search: Optional[str] = None,
        include_inactive: bool = False,
        in_stock_only: bool = False,
    ) -> list[Product]:
        """Search and filter products"""
        query = db.query(models.Product)

        if not include_inactive:
            query = query.filter(models.Product.is_active.is_(True))

        if in_stock_only:
            query = query.filter(models.Product.stock_quantity > 0)

        if search:
            search_term = f"%{search.lower()}%"
            query = query.filter(
                (models.Product.name.ilike(search_term)) | (models.Product.sku.ilike(search_term))
            )

        return [to_domain(r) for r in query.order_by(models.Product.name).all()]

    @staticmethod
    def add(db: Session, product: Product) -> Product:
        row = models.Product(id=product.id)
        _apply(row, product)
        db.add(row)
        db.flush()
        return product

    @staticmethod
    def update(db: Session, product: Product) -> Product:
        row = db.get(models.Product, product.id)
        _apply(row, product)
        db.flush()
        return product
