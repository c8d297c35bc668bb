"""Cart aggregate - per-user line items and pricing"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ...config import CART_EXPIRY_DAYS
from ..errors import (
    InvalidOperationError,
    InvalidQuantityError,
    ItemNotFoundError,
    NotFoundError,
)
from ..state_machine import utcnow
from ..value_objects import Money, default_currency


@dataclass
class CartItem:
    product_id: str
    quantity: int
    unit_price: Money

    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass
class Cart:
    user_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    items: list[CartItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(days=CART_EXPIRY_DAYS)

    @classmethod
    def create(cls, user_id: str, expires_at: Optional[datetime] = None) -> "Cart":
        return cls(user_id=user_id, expires_at=expires_at)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, product_id: str, quantity: int, unit_price: Money) -> CartItem:
        """
        Add a product or increase its quantity.

        The unit price captured by the first add is kept; later adds of the
        same product only change the quantity.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        self._ensure_not_expired("add items to")

        item = self.get_item(product_id)
        if item is not None:
            item.quantity += quantity
        else:
            item = CartItem(product_id=product_id, quantity=quantity, unit_price=unit_price)
            self.items.append(item)

        self._touch()
        return item

    def update_item_quantity(self, product_id: str, new_quantity: int) -> None:
        if new_quantity < 0:
            raise InvalidQuantityError(new_quantity)
        self._ensure_not_expired("update items in")

        if new_quantity == 0:
            self.remove_item(product_id)
            return

        item = self.get_item(product_id)
        if item is None:
            raise ItemNotFoundError(product_id)

        item.quantity = new_quantity
        self._touch()

    def remove_item(self, product_id: str) -> None:
        self._ensure_not_expired("remove items from")
        item = self.get_item(product_id)
        if item is None:
            return

        self.items.remove(item)
        self._touch()

    def clear(self) -> None:
        if not self.items:
            return
        self.items.clear()
        self._touch()

    def extend_expiration(self, days: int = CART_EXPIRY_DAYS) -> None:
        self.expires_at = utcnow() + timedelta(days=days)
        self._touch()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_total_amount(self) -> Money:
        if not self.items:
            return Money.zero(default_currency())

        total = Money.zero(self.items[0].unit_price.currency)
        for item in self.items:
            total = total.add(item.total_price())
        return total

    def get_total_item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def get_item(self, product_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def has_item(self, product_id: str) -> bool:
        return self.get_item(product_id) is not None

    def is_empty(self) -> bool:
        return not self.items

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.expires_at is not None and now > self.expires_at

    def validate_stock(self, products: Iterable) -> None:
        """Check every line against the current catalog entries before checkout"""
        by_id = {p.id: p for p in products}
        for item in self.items:
            product = by_id.get(item.product_id)
            if product is None:
                raise NotFoundError("Product", item.product_id)
            if not product.is_active:
                raise InvalidOperationError(f"Product {product.name} is no longer available")
            if not product.has_sufficient_stock(item.quantity):
                raise InvalidOperationError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.stock_quantity}, Required: {item.quantity}"
                )

    def _ensure_not_expired(self, action: str) -> None:
        if self.is_expired():
            raise InvalidOperationError(f"Cannot {action} expired cart")

    def _touch(self) -> None:
        self.updated_at = utcnow()
