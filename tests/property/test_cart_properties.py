"""Property-based checks on cart arithmetic.

Invariants:
- the total is the sum of quantity x unit price over all lines
- the item count is the sum of quantities
- repeated adds of one product collapse into one line at the first price
- setting a quantity to zero removes the line, however often it is repeated
"""

from decimal import Decimal

from hypothesis import given, settings, strategies as st

from app.domain.cart.aggregate import Cart
from app.domain.value_objects import Money

product_ids = st.sampled_from(["p1", "p2", "p3", "p4"])
quantities = st.integers(min_value=1, max_value=50)
prices = st.decimals(min_value=Decimal("0.001"), max_value=Decimal("500"), places=3)

adds = st.lists(st.tuples(product_ids, quantities, prices), min_size=1, max_size=20)


class TestCartArithmetic:
    @given(adds=adds)
    @settings(max_examples=200)
    def test_total_matches_lines(self, adds):
        cart = Cart.create("user-1")
        first_price: dict[str, Decimal] = {}
        quantity: dict[str, int] = {}

        for product_id, qty, price in adds:
            cart.add_item(product_id, qty, Money.create(price, "USD"))
            first_price.setdefault(product_id, price)
            quantity[product_id] = quantity.get(product_id, 0) + qty

        expected = sum((first_price[p] * quantity[p] for p in quantity), Decimal("0"))
        assert cart.get_total_amount() == Money.create(expected, "USD")
        assert cart.get_total_item_count() == sum(quantity.values())
        assert len(cart.items) == len(quantity)
        for product_id, price in first_price.items():
            assert cart.get_item(product_id).unit_price.amount == price

    @given(adds=adds, repeats=st.integers(min_value=1, max_value=3))
    def test_zero_quantity_removes_line(self, adds, repeats):
        cart = Cart.create("user-1")
        for product_id, qty, price in adds:
            cart.add_item(product_id, qty, Money.create(price, "USD"))

        target = adds[0][0]
        for _ in range(repeats):
            cart.update_item_quantity(target, 0)

        assert not cart.has_item(target)
        assert all(i.quantity > 0 for i in cart.items)
