"""Cart service - Business logic for cart operations"""

import logging

from sqlalchemy.orm import Session

from ...models import User
from ..catalog.repository import ProductRepository
from ..errors import CurrencyMismatchError, InvalidOperationError, NotFoundError
from .aggregate import Cart
from .repository import CartRepository
from .schemas import CartResponse

logger = logging.getLogger(__name__)


class CartService:
    """Service layer for cart business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepository()
        self.products = ProductRepository()

    def get_cart(self, user: User) -> Cart:
        """Current cart, or an unsaved empty one if the user has none yet"""
        cart = self.repo.get_active_by_user_id(self.db, user.id)
        return cart if cart else Cart.create(user.id)

    def add_item(self, user: User, product_id: str, quantity: int) -> Cart:
        product = self.products.get_by_id(self.db, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        if not product.is_active:
            raise InvalidOperationError("Product is not available")

        cart = self.repo.get_active_by_user_id(self.db, user.id)
        is_new = cart is None
        if is_new:
            cart = Cart.create(user.id)
            logger.info(f"🛒 Creating cart for user {user.id}")

        existing = cart.get_item(product_id)
        requested = quantity + (existing.quantity if existing else 0)
        if not product.has_sufficient_stock(requested):
            raise InvalidOperationError(
                f"Insufficient stock. Available: {product.stock_quantity}, Requested: {requested}"
            )

        # One currency per cart, checked before anything is written
        if not cart.is_empty() and cart.items[0].unit_price.currency != product.price.currency:
            raise CurrencyMismatchError(cart.items[0].unit_price.currency.value, product.price.currency.value)

        cart.add_item(product_id, quantity, product.price)

        if is_new:
            self.repo.add(self.db, cart)
        else:
            self.repo.update(self.db, cart)
        self.db.commit()
        return cart

    def update_item_quantity(self, user: User, product_id: str, quantity: int) -> Cart:
        cart = self.get_cart(user)

        if quantity > 0:
            product = self.products.get_by_id(self.db, product_id)
            if product and not product.has_sufficient_stock(quantity):
                raise InvalidOperationError(
                    f"Insufficient stock. Available: {product.stock_quantity}, Requested: {quantity}"
                )

        cart.update_item_quantity(product_id, quantity)
        self._save(cart)
        return cart

    def remove_item(self, user: User, product_id: str) -> Cart:
        cart = self.get_cart(user)
        cart.remove_item(product_id)
        self._save(cart)
        return cart

    def clear(self, user: User) -> Cart:
        cart = self.get_cart(user)
        cart.clear()
        self._save(cart)
        return cart

    def purge_expired_carts(self) -> int:
        count = self.repo.delete_expired(self.db)
        self.db.commit()
        if count:
            logger.info(f"🧹 Removed {count} expired carts")
        return count

    def to_response(self, cart: Cart) -> CartResponse:
        products = self.products.get_many(self.db, (i.product_id for i in cart.items))
        return CartResponse.from_domain(cart, {p.id: p.name for p in products})

    def _save(self, cart: Cart) -> None:
        # Carts that were never persisted and are still empty need no row
        if self.repo.get_by_id(self.db, cart.id) is None:
            if cart.is_empty():
                return
            self.repo.add(self.db, cart)
        else:
            self.repo.update(self.db, cart)
        self.db.commit()
