"""Catalog service - Business logic for product operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidOperationError, NotFoundError
from ..value_objects import Money
from .aggregate import Product
from .repository import ProductRepository
from .schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository()

    def list_products(self, search: Optional[str] = None, in_stock_only: bool = False) -> list[Product]:
        return self.repo.search(self.db, search=search, in_stock_only=in_stock_only)

    def get_product(self, product_id: str) -> Product:
        product = self.repo.get_by_id(self.db, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def create_product(self, data: ProductCreate) -> Product:
        logger.info(f"📦 Creating product {data.sku}")

        if self.repo.get_by_sku(self.db, data.sku.strip()):
            raise InvalidOperationError(f"Product with SKU {data.sku} already exists")

        product = Product.create(
            name=data.name,
            sku=data.sku,
            price=Money.create(data.price.amount, data.price.currency),
            stock_quantity=data.stockQuantity,
            description=data.description,
        )
        self.repo.add(self.db, product)
        self.db.commit()
        return product

    def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        old_price = product.price
        product.update_details(
            name=data.name,
            price=Money.create(data.price.amount, data.price.currency),
            description=data.description,
        )
        self.repo.update(self.db, product)
        self.db.commit()
        logger.info(f"📦 Product {product.sku} updated, price {old_price} → {product.price}")
        return product

    def update_stock(self, product_id: str, stock_quantity: int) -> Product:
        product = self.get_product(product_id)
        old = product.stock_quantity
        product.update_stock(stock_quantity)
        self.repo.update(self.db, product)
        self.db.commit()
        logger.info(f"📦 Stock for {product.sku}: {old} → {stock_quantity}")
        return product

    def set_active(self, product_id: str, active: bool) -> Product:
        product = self.get_product(product_id)
        if active:
            product.activate()
        else:
            product.deactivate()
        self.repo.update(self.db, product)
        self.db.commit()
        return product
