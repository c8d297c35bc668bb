"""Order service - Checkout, payment and fulfilment"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...models import User
from ...services.payment_service import StripePaymentService
from ..cart.repository import CartRepository
from ..catalog.repository import ProductRepository
from ..errors import ExternalServiceError, InvalidOperationError, NotFoundError, UnauthorizedError, ValidationError
from ..saga import Saga
from ..schemas import MoneyResponse
from ..value_objects import Money
from .aggregate import Order, OrderStatus, PaymentStatus
from .repository import OrderRepository
from .schemas import CheckoutRequest, CurrencyRevenue, OrderAnalyticsResponse, OrderResponse

logger = logging.getLogger(__name__)

ADMIN_TRANSITIONS = ("confirm", "start_processing", "ship", "deliver")

# Tries at a unique order number before giving up
NUMBER_ATTEMPTS = 3


class OrderService:
    """Service layer for order business logic"""

    def __init__(self, db: Session, payments: Optional[StripePaymentService] = None):
        self.db = db
        self.repo = OrderRepository()
        self.carts = CartRepository()
        self.products = ProductRepository()
        self.payments = payments or StripePaymentService()

    # ========================================================================
    # CHECKOUT
    # ========================================================================

    def checkout(self, user: User, data: CheckoutRequest) -> Order:
        """
        Create an order from the user's current cart.

        Stock is checked and reserved, the cart snapshot becomes the order,
        and the cart is emptied, all in a single commit. A concurrent checkout
        that took the same order number rolls this one back; it is then
        rebuilt from fresh state under the next number.
        """
        for attempt in range(1, NUMBER_ATTEMPTS + 1):
            try:
                return self._checkout_once(user, data)
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"⚠️ Order number collision for user {user.id} (attempt {attempt}/{NUMBER_ATTEMPTS})")
        raise InvalidOperationError("Could not allocate an order number, please try again")

    def _checkout_once(self, user: User, data: CheckoutRequest) -> Order:
        cart = self.carts.get_active_by_user_id(self.db, user.id)
        if cart is None or cart.is_empty():
            raise InvalidOperationError("Cannot create an order from an empty cart")

        products = {p.id: p for p in self.products.get_many(self.db, (i.product_id for i in cart.items))}
        cart.validate_stock(products.values())

        shipping = data.shippingAddress.to_value_object()
        billing = data.billingAddress.to_value_object() if data.billingAddress else shipping

        order = Order.from_cart(cart, self.repo.generate_order_number(self.db), shipping, billing)
        order.add_notes(data.notes)

        for item in order.items:
            product = products[item.product_id]
            product.reduce_stock(item.quantity)
            self.products.update(self.db, product)

        self.repo.add(self.db, order)
        cart.clear()
        self.carts.update(self.db, cart)
        self.db.commit()

        logger.info(f"✅ Order {order.order_number} created for user {user.id} ({order.total_amount})")
        return order

    # ========================================================================
    # QUERIES
    # ========================================================================

    def list_for_user(self, user: User) -> list[Order]:
        return self.repo.list_for_user(self.db, user.id)

    def list_all(self, status: Optional[OrderStatus] = None) -> list[Order]:
        return self.repo.list_all(self.db, status)

    def analytics(self, start: Optional[date] = None, end: Optional[date] = None) -> OrderAnalyticsResponse:
        """
        Order overview for admins.

        Counts cover every order created in the inclusive date range. Revenue
        only counts orders whose payment completed and is kept per currency.
        """
        if start and end and end < start:
            raise ValidationError("End date cannot be before start date")

        stats = self.repo.get_analytics(
            self.db,
            datetime.combine(start, time.min) if start else None,
            datetime.combine(end + timedelta(days=1), time.min) if end else None,
        )
        counts = stats["status_counts"]
        total = sum(counts.values())
        refunded = counts.get(OrderStatus.REFUNDED.value, 0)

        revenue = []
        for currency, paid_orders, amount in stats["revenue"]:
            money = Money.create(amount, currency)
            revenue.append(
                CurrencyRevenue(
                    currency=money.currency.value,
                    paidOrders=paid_orders,
                    revenue=MoneyResponse.from_money(money),
                    averageOrderValue=MoneyResponse.from_money(Money(money.amount / paid_orders, money.currency)),
                )
            )

        return OrderAnalyticsResponse(
            startDate=start,
            endDate=end,
            totalOrders=total,
            pendingOrders=counts.get(OrderStatus.PENDING.value, 0),
            deliveredOrders=counts.get(OrderStatus.DELIVERED.value, 0),
            cancelledOrders=counts.get(OrderStatus.CANCELLED.value, 0),
            refundedOrders=refunded,
            refundRate=round(refunded / total, 4) if total else 0.0,
            byStatus={status.value: counts.get(status.value, 0) for status in OrderStatus},
            revenue=revenue,
        )

    def get_order(self, user: User, order_id: str) -> Order:
        """Owner or admin only"""
        order = self.repo.get_by_id(self.db, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        if order.user_id != user.id and not is_admin(user):
            raise UnauthorizedError("You do not have access to this order")
        return order

    # ========================================================================
    # PAYMENT
    # ========================================================================

    async def pay(self, user: User, order_id: str, payment_method_id: str) -> tuple[Order, bool, Optional[str]]:
        """
        Charge the order total.

        Returns (order, success, error_message). A declined card is not an
        exception: the order is marked failed and the result says so.
        """
        order = self.get_order(user, order_id)
        # Failed is terminal, so only pending payments reach Stripe
        if order.payment_status != PaymentStatus.PENDING:
            raise InvalidOperationError(f"Payment already {order.payment_status.value}")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidOperationError("Cannot pay for a cancelled order")

        result = await self.payments.process_payment(
            amount=order.total_amount,
            payment_method_id=payment_method_id,
            description=f"Payment for order {order.order_number}",
            metadata={"order_id": order.id, "order_number": order.order_number, "user_id": order.user_id},
            idempotency_key=order.order_number,
        )

        if result.success and result.payment_id:
            order.mark_payment_completed(result.payment_id)
            self.repo.update(self.db, order)
            self.db.commit()
            logger.info(f"💳 Payment {result.payment_id} completed for order {order.order_number}")
            return order, True, None

        order.mark_payment_failed()
        self.repo.update(self.db, order)
        self.db.commit()
        logger.warning(f"⚠️ Payment failed for order {order.order_number}: {result.error_message}")
        return order, False, result.error_message or "Payment processing failed"

    async def refund(self, order_id: str, reason: Optional[str] = None) -> Order:
        """Refund a paid order through Stripe, then record it on the order"""
        order = self.repo.get_by_id(self.db, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        if order.payment_status != PaymentStatus.COMPLETED:
            raise InvalidOperationError("Cannot refund order that hasn't been paid")
        if not order.payment_id:
            raise InvalidOperationError("No payment ID found for this order")

        result = await self.payments.process_refund(order.payment_id, order.total_amount)
        if not result.success:
            logger.error(f"❌ Refund failed for order {order.order_number}: {result.error_message}")
            raise ExternalServiceError(result.error_message or "Refund processing failed")

        order.process_refund()
        if reason:
            order.add_notes(f"Refund: {reason}")
        self.repo.update(self.db, order)
        self.db.commit()

        logger.info(f"💸 Order {order.order_number} refunded (refund {result.payment_id}, {result.amount})")
        return order

    # ========================================================================
    # STATUS CHANGES
    # ========================================================================

    async def cancel(self, user: User, order_id: str) -> Order:
        """Cancel the order and put its items back in stock"""
        order = self.get_order(user, order_id)
        previous_status, previous_updated = order.status, order.updated_at

        def undo_cancel():
            order.status = previous_status
            order.updated_at = previous_updated

        saga = Saga(f"cancel order {order.order_number}")
        saga.add_step("cancel", order.cancel, undo_cancel)
        saga.add_step("restore stock", lambda: self._restore_stock(order))
        await saga.run()

        self.repo.update(self.db, order)
        self.db.commit()
        logger.info(f"🚫 Order {order.order_number} cancelled; stock restored for {len(order.items)} items")
        return order

    def transition(self, order_id: str, operation: str) -> Order:
        """Admin fulfilment moves: confirm, start_processing, ship, deliver"""
        if operation not in ADMIN_TRANSITIONS:
            raise InvalidOperationError(f"Unknown order operation: {operation}")

        order = self.repo.get_by_id(self.db, order_id)
        if not order:
            raise NotFoundError("Order", order_id)

        old_status = order.status
        getattr(order, operation)()
        self.repo.update(self.db, order)
        self.db.commit()
        logger.info(f"📦 Order {order.order_number}: {old_status.value} → {order.status.value}")
        return order

    def to_response(self, order: Order) -> OrderResponse:
        products = self.products.get_many(self.db, (i.product_id for i in order.items))
        return OrderResponse.from_domain(order, {p.id: p.name for p in products})

    def _restore_stock(self, order: Order) -> None:
        products = {p.id: p for p in self.products.get_many(self.db, (i.product_id for i in order.items))}
        for item in order.items:
            product = products.get(item.product_id)
            if product is None:
                logger.warning(f"⚠️ Product {item.product_id} no longer exists, stock not restored")
                continue
            product.restore_stock(item.quantity)
            self.products.update(self.db, product)
