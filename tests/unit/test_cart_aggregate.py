"""Cart aggregate behaviour."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.cart.aggregate import Cart
from app.domain.catalog.aggregate import Product
from app.domain.errors import (
    CurrencyMismatchError,
    InvalidOperationError,
    InvalidQuantityError,
    ItemNotFoundError,
)
from app.domain.state_machine import utcnow
from app.domain.value_objects import Currency, Money


def usd(amount) -> Money:
    return Money.create(amount, "USD")


class TestAddItem:
    def test_new_item(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        assert cart.get_item("p1").quantity == 2

    def test_repeated_add_sums_quantity_and_keeps_first_price(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        cart.add_item("p1", 3, usd(12))

        assert len(cart.items) == 1
        assert cart.get_item("p1").quantity == 5
        assert cart.get_item("p1").unit_price == usd(10)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, quantity):
        cart = Cart.create("user-1")
        with pytest.raises(InvalidQuantityError):
            cart.add_item("p1", quantity, usd(10))

    def test_keeps_insertion_order(self):
        cart = Cart.create("user-1")
        for pid in ("c", "a", "b"):
            cart.add_item(pid, 1, usd(1))
        assert [i.product_id for i in cart.items] == ["c", "a", "b"]

    def test_expired_cart_rejects_changes(self):
        cart = Cart.create("user-1", expires_at=utcnow() - timedelta(minutes=1))
        assert cart.is_expired()
        with pytest.raises(InvalidOperationError):
            cart.add_item("p1", 1, usd(10))


class TestUpdateQuantity:
    def test_update(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        cart.update_item_quantity("p1", 7)
        assert cart.get_item("p1").quantity == 7

    def test_zero_removes_and_is_idempotent(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))

        cart.update_item_quantity("p1", 0)
        assert not cart.has_item("p1")

        cart.update_item_quantity("p1", 0)
        assert cart.is_empty()

    def test_missing_item_raises(self):
        cart = Cart.create("user-1")
        with pytest.raises(ItemNotFoundError):
            cart.update_item_quantity("nope", 3)

    def test_negative_rejected(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        with pytest.raises(InvalidQuantityError):
            cart.update_item_quantity("p1", -1)


class TestTotals:
    def test_two_lines(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        cart.add_item("p2", 1, usd(5))

        assert cart.get_total_amount() == usd(25)
        assert cart.get_total_item_count() == 3

    def test_empty_cart_is_zero_in_default_currency(self):
        total = Cart.create("user-1").get_total_amount()
        assert total.amount == Decimal("0")
        assert total.currency == Currency.BHD

    def test_mixed_currencies_fail_on_total(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 1, usd(10))
        cart.add_item("p2", 1, Money.create(3, "BHD"))
        with pytest.raises(CurrencyMismatchError):
            cart.get_total_amount()

    def test_remove_missing_item_is_noop(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 1, usd(10))
        cart.remove_item("p2")
        assert cart.get_total_item_count() == 1

    def test_clear(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 1, usd(10))
        cart.clear()
        assert cart.is_empty()


class TestExpiry:
    def test_default_expiry_is_thirty_days(self):
        cart = Cart.create("user-1")
        assert cart.expires_at - cart.created_at == timedelta(days=30)

    def test_extend_expiration(self):
        cart = Cart.create("user-1", expires_at=utcnow() + timedelta(days=1))
        cart.extend_expiration(10)
        assert cart.expires_at > utcnow() + timedelta(days=9)


class TestValidateStock:
    def _product(self, stock=5, active=True) -> Product:
        product = Product.create("Kit", "KIT", usd(10), stock)
        product.is_active = active
        return product

    def test_sufficient(self):
        product = self._product(stock=5)
        cart = Cart.create("user-1")
        cart.add_item(product.id, 5, product.price)
        cart.validate_stock([product])

    def test_insufficient(self):
        product = self._product(stock=1)
        cart = Cart.create("user-1")
        cart.add_item(product.id, 2, product.price)
        with pytest.raises(InvalidOperationError, match="Insufficient stock"):
            cart.validate_stock([product])

    def test_inactive_product(self):
        product = self._product(active=False)
        cart = Cart.create("user-1")
        cart.add_item(product.id, 1, product.price)
        with pytest.raises(InvalidOperationError, match="no longer available"):
            cart.validate_stock([product])
