"""Order aggregate: creation from a cart and the two state machines."""

import pytest

from app.domain.cart.aggregate import Cart
from app.domain.errors import (
    InvalidOperationError,
    InvalidQuantityError,
    InvalidStateTransitionError,
    ValidationError,
)
from app.domain.orders.aggregate import (
    ORDER_TRANSITIONS,
    Order,
    OrderStatus,
    PaymentStatus,
)
from app.domain.state_machine import allowed_operations
from app.domain.value_objects import Address, Money

ADDRESS = Address.create("12 Road", "Manama", "", "317", "Bahrain")


def usd(amount) -> Money:
    return Money.create(amount, "USD")


def make_order(**items) -> Order:
    cart = Cart.create("user-1")
    for product_id, quantity in (items or {"p1": 2}).items():
        cart.add_item(product_id, quantity, usd(10))
    return Order.from_cart(cart, "ORD-2026-000001", ADDRESS, ADDRESS)


def paid_order() -> Order:
    order = make_order()
    order.mark_payment_completed("pi_123")
    return order


class TestFromCart:
    def test_copies_items_and_total(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        cart.add_item("p2", 1, usd(5))

        order = Order.from_cart(cart, "ORD-2026-000001", ADDRESS, ADDRESS)

        assert order.total_amount == usd(25)
        assert order.get_total_item_count() == 3
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING

    def test_later_cart_changes_do_not_leak(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 2, usd(10))
        order = Order.from_cart(cart, "ORD-2026-000001", ADDRESS, ADDRESS)

        cart.add_item("p1", 5, usd(10))
        cart.add_item("p2", 1, usd(3))

        assert [(i.product_id, i.quantity) for i in order.items] == [("p1", 2)]
        assert order.total_amount == usd(20)

    def test_empty_cart_rejected(self):
        with pytest.raises(InvalidOperationError):
            Order.from_cart(Cart.create("user-1"), "ORD-2026-000001", ADDRESS, ADDRESS)

    def test_blank_order_number_rejected(self):
        cart = Cart.create("user-1")
        cart.add_item("p1", 1, usd(10))
        with pytest.raises(ValidationError):
            Order.from_cart(cart, "  ", ADDRESS, ADDRESS)


class TestFulfilment:
    def test_happy_path(self):
        order = make_order()
        order.confirm()
        order.start_processing()
        order.ship()
        order.deliver()

        assert order.status == OrderStatus.DELIVERED
        assert order.shipped_at is not None
        assert order.delivered_at >= order.shipped_at

    def test_confirm_twice_fails(self):
        order = make_order()
        order.confirm()
        with pytest.raises(InvalidStateTransitionError):
            order.confirm()

    def test_confirm_without_items_fails(self):
        order = Order.create("user-1", ADDRESS, ADDRESS, "ORD-2026-000002")
        with pytest.raises(InvalidOperationError):
            order.confirm()

    def test_ship_before_processing_fails(self):
        order = make_order()
        order.confirm()
        with pytest.raises(InvalidStateTransitionError):
            order.ship()

    def test_cancel_after_delivery_fails(self):
        order = make_order()
        order.confirm()
        order.start_processing()
        order.ship()
        order.deliver()
        with pytest.raises(InvalidStateTransitionError):
            order.cancel()

    @pytest.mark.parametrize("steps", [[], ["confirm"], ["confirm", "start_processing"]])
    def test_cancel_allowed_before_shipping(self, steps):
        order = make_order()
        for step in steps:
            getattr(order, step)()
        assert order.can_be_cancelled()
        order.cancel()
        assert order.status == OrderStatus.CANCELLED

    def test_error_names_operation_and_state(self):
        order = make_order()
        with pytest.raises(InvalidStateTransitionError) as exc:
            order.deliver()
        assert exc.value.current_state == "pending"
        assert "deliver" in exc.value.message

    def test_allowed_operations_from_pending(self):
        assert set(allowed_operations(ORDER_TRANSITIONS, OrderStatus.PENDING)) == {"confirm", "cancel", "refund"}


class TestPayment:
    def test_mark_completed(self):
        order = paid_order()
        assert order.payment_status == PaymentStatus.COMPLETED
        assert order.payment_id == "pi_123"

    def test_blank_payment_id_rejected(self):
        with pytest.raises(ValidationError):
            make_order().mark_payment_completed(" ")

    def test_failed_is_terminal(self):
        order = make_order()
        order.mark_payment_failed()
        with pytest.raises(InvalidStateTransitionError):
            order.mark_payment_completed("pi_123")

    def test_refund_requires_completed_payment(self):
        with pytest.raises(InvalidOperationError):
            make_order().process_refund()

    def test_refund(self):
        order = paid_order()
        order.confirm()
        order.process_refund()
        assert order.status == OrderStatus.REFUNDED
        assert order.payment_status == PaymentStatus.REFUNDED

    def test_refund_twice_fails(self):
        order = paid_order()
        order.process_refund()
        with pytest.raises(InvalidOperationError):
            order.process_refund()


class TestLineItems:
    def test_add_item_merges(self):
        order = make_order(p1=1)
        order.add_item("p1", 2, usd(99))
        assert order.items[0].quantity == 3
        assert order.items[0].unit_price == usd(10)
        assert order.total_amount == usd(30)

    def test_update_and_remove(self):
        order = make_order(p1=1, p2=1)
        order.update_item_quantity("p2", 4)
        order.remove_item("p1")
        assert order.total_amount == usd(40)

    def test_zero_quantity_rejected(self):
        order = make_order()
        with pytest.raises(InvalidQuantityError):
            order.update_item_quantity("p1", 0)

    def test_confirmed_order_is_locked(self):
        order = make_order()
        order.confirm()
        with pytest.raises(InvalidOperationError):
            order.add_item("p9", 1, usd(1))

    def test_notes_append(self):
        order = make_order()
        order.add_notes("Leave at reception")
        order.add_notes("Call first")
        assert order.notes == "Leave at reception\nCall first"
