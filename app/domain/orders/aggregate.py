"""
Order aggregate.

Two independent state machines live on an order:

    status:          pending -> confirmed -> processing -> shipped -> delivered
                     pending | confirmed | processing -> cancelled
                     (any, once paid) -> refunded

    payment_status:  pending -> completed | failed
                     completed -> refunded

Every change goes through the tables below. Cancelling does not touch
inventory; the cancel handler restores stock in the same unit of work.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import (
    InvalidOperationError,
    InvalidQuantityError,
    ItemNotFoundError,
    ValidationError,
)
from ..state_machine import Transition, apply_transition, utcnow
from ..value_objects import Address, Money, default_currency


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


ORDER_TRANSITIONS = {
    "confirm": Transition(frozenset({OrderStatus.PENDING}), OrderStatus.CONFIRMED),
    "start_processing": Transition(frozenset({OrderStatus.CONFIRMED}), OrderStatus.PROCESSING),
    "ship": Transition(frozenset({OrderStatus.PROCESSING}), OrderStatus.SHIPPED),
    "deliver": Transition(frozenset({OrderStatus.SHIPPED}), OrderStatus.DELIVERED),
    "cancel": Transition(
        frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}),
        OrderStatus.CANCELLED,
    ),
    # gated on payment_status instead of status
    "refund": Transition(None, OrderStatus.REFUNDED),
}

PAYMENT_TRANSITIONS = {
    "complete_payment": Transition(frozenset({PaymentStatus.PENDING}), PaymentStatus.COMPLETED),
    "fail_payment": Transition(frozenset({PaymentStatus.PENDING}), PaymentStatus.FAILED),
    "refund_payment": Transition(frozenset({PaymentStatus.COMPLETED}), PaymentStatus.REFUNDED),
}


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    quantity: int
    unit_price: Money

    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass
class Order:
    order_number: str
    user_id: str
    shipping_address: Address
    billing_address: Address
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    items: list[OrderItem] = field(default_factory=list)
    total_amount: Money = field(default_factory=lambda: Money.zero(default_currency()))
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        user_id: str,
        shipping_address: Address,
        billing_address: Address,
        order_number: str,
    ) -> "Order":
        if not order_number or not order_number.strip():
            raise ValidationError("Order number cannot be empty")
        return cls(
            order_number=order_number.strip(),
            user_id=user_id,
            shipping_address=shipping_address,
            billing_address=billing_address,
        )

    @classmethod
    def from_cart(
        cls,
        cart,
        order_number: str,
        shipping_address: Address,
        billing_address: Address,
    ) -> "Order":
        """Snapshot a cart into a new pending order"""
        if cart.is_empty():
            raise InvalidOperationError("Cannot create an order from an empty cart")

        order = cls.create(cart.user_id, shipping_address, billing_address, order_number)
        # OrderItem is frozen and Money immutable, so later cart edits can't leak in
        order.items = [
            OrderItem(product_id=i.product_id, quantity=i.quantity, unit_price=i.unit_price)
            for i in cart.items
        ]
        order.total_amount = cart.get_total_amount()
        return order

    # ------------------------------------------------------------------
    # Line items (pending orders only)
    # ------------------------------------------------------------------

    def add_item(self, product_id: str, quantity: int, unit_price: Money) -> None:
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        self._ensure_modifiable()

        existing = self._find_item(product_id)
        if existing is not None:
            index = self.items.index(existing)
            self.items[index] = OrderItem(product_id, existing.quantity + quantity, existing.unit_price)
        else:
            self.items.append(OrderItem(product_id, quantity, unit_price))

        self._recalculate_total()

    def remove_item(self, product_id: str) -> None:
        self._ensure_modifiable()
        existing = self._find_item(product_id)
        if existing is None:
            return
        self.items.remove(existing)
        self._recalculate_total()

    def update_item_quantity(self, product_id: str, new_quantity: int) -> None:
        self._ensure_modifiable()
        if new_quantity <= 0:
            raise InvalidQuantityError(new_quantity)

        existing = self._find_item(product_id)
        if existing is None:
            raise ItemNotFoundError(product_id)

        index = self.items.index(existing)
        self.items[index] = OrderItem(product_id, new_quantity, existing.unit_price)
        self._recalculate_total()

    # ------------------------------------------------------------------
    # Fulfilment state machine
    # ------------------------------------------------------------------

    def confirm(self) -> None:
        target = self._transition("confirm")
        if not self.items:
            raise InvalidOperationError("Cannot confirm order without items")
        self._set_status(target)

    def start_processing(self) -> None:
        self._set_status(self._transition("start_processing"))

    def ship(self) -> None:
        self._set_status(self._transition("ship"))
        self.shipped_at = self.updated_at

    def deliver(self) -> None:
        self._set_status(self._transition("deliver"))
        self.delivered_at = self.updated_at

    def cancel(self) -> None:
        self._set_status(self._transition("cancel"))

    def process_refund(self) -> None:
        if self.payment_status != PaymentStatus.COMPLETED:
            raise InvalidOperationError("Cannot refund order that hasn't been paid")
        target = self._transition("refund")
        self.payment_status = apply_transition(
            "payment", PAYMENT_TRANSITIONS, "refund_payment", self.payment_status
        )
        self._set_status(target)

    # ------------------------------------------------------------------
    # Payment state machine
    # ------------------------------------------------------------------

    def mark_payment_completed(self, payment_id: str) -> None:
        if not payment_id or not payment_id.strip():
            raise ValidationError("Payment ID cannot be empty")
        self.payment_status = apply_transition(
            "payment", PAYMENT_TRANSITIONS, "complete_payment", self.payment_status
        )
        self.payment_id = payment_id.strip()
        self._touch()

    def mark_payment_failed(self) -> None:
        self.payment_status = apply_transition(
            "payment", PAYMENT_TRANSITIONS, "fail_payment", self.payment_status
        )
        self._touch()

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def add_notes(self, notes: Optional[str]) -> None:
        if not notes or not notes.strip():
            return
        self.notes = notes.strip() if not self.notes else f"{self.notes}\n{notes.strip()}"
        self._touch()

    def can_be_cancelled(self) -> bool:
        return ORDER_TRANSITIONS["cancel"].allows(self.status)

    def is_modifiable(self) -> bool:
        return self.status == OrderStatus.PENDING

    def get_total_item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def _transition(self, operation: str) -> OrderStatus:
        return apply_transition("order", ORDER_TRANSITIONS, operation, self.status)

    def _set_status(self, status: OrderStatus) -> None:
        self.status = status
        self._touch()

    def _ensure_modifiable(self) -> None:
        if not self.is_modifiable():
            raise InvalidOperationError("Cannot modify confirmed order")

    def _find_item(self, product_id: str) -> Optional[OrderItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def _recalculate_total(self) -> None:
        if not self.items:
            self.total_amount = Money.zero(default_currency())
        else:
            total = Money.zero(self.items[0].unit_price.currency)
            for item in self.items:
                total = total.add(item.total_price())
            self.total_amount = total
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utcnow()
