"""Product aggregate - price and stock bookkeeping"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..errors import InvalidOperationError, InvalidQuantityError, ValidationError
from ..state_machine import utcnow
from ..value_objects import Money


@dataclass
class Product:
    name: str
    sku: str
    price: Money
    stock_quantity: int = 0
    description: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        name: str,
        sku: str,
        price: Money,
        stock_quantity: int,
        description: Optional[str] = None,
    ) -> "Product":
        if not name or not name.strip():
            raise ValidationError("Product name cannot be empty")
        if not sku or not sku.strip():
            raise ValidationError("Product SKU cannot be empty")
        if stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        return cls(
            name=name.strip(),
            sku=sku.strip(),
            price=price,
            stock_quantity=stock_quantity,
            description=description.strip() if description else None,
        )

    def update_details(self, name: str, price: Money, description: Optional[str] = None) -> None:
        """Replace name, description and price; carts and orders keep the price they captured"""
        if not name or not name.strip():
            raise ValidationError("Product name cannot be empty")
        self.name = name.strip()
        self.description = description.strip() if description else None
        self.price = price
        self.updated_at = utcnow()

    def has_sufficient_stock(self, requested: int) -> bool:
        return self.stock_quantity >= requested

    def is_in_stock(self) -> bool:
        return self.stock_quantity > 0

    def update_stock(self, new_quantity: int) -> None:
        if new_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        self.stock_quantity = new_quantity
        self.updated_at = utcnow()

    def reduce_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        if self.stock_quantity < quantity:
            raise InvalidOperationError(
                f"Insufficient stock. Available: {self.stock_quantity}, Requested: {quantity}"
            )
        self.stock_quantity -= quantity
        self.updated_at = utcnow()

    def restore_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        self.stock_quantity += quantity
        self.updated_at = utcnow()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = utcnow()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = utcnow()
