"""Order domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...utils.sanitization import validate_and_sanitize_input
from ..schemas import AddressSchema, MoneyResponse
from .aggregate import Order


class CheckoutRequest(BaseModel):
    """Schema for turning the current cart into an order"""

    shippingAddress: AddressSchema
    billingAddress: Optional[AddressSchema] = None  # Defaults to the shipping address
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=1000)


class PayOrderRequest(BaseModel):
    paymentMethodId: str

    @field_validator("paymentMethodId")
    @classmethod
    def validate_payment_method(cls, v):
        if not v or not v.strip():
            raise ValueError("Payment method is required")
        return v.strip()


class RefundOrderRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v):
        return validate_and_sanitize_input(v, max_length=500)


class OrderItemResponse(BaseModel):
    productId: str
    productName: Optional[str] = None
    quantity: int
    unitPrice: MoneyResponse
    totalPrice: MoneyResponse


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: str
    orderNumber: str
    status: str
    paymentStatus: str
    paymentId: Optional[str] = None
    items: list[OrderItemResponse]
    totalAmount: MoneyResponse
    totalItemCount: int
    shippingAddress: AddressSchema
    billingAddress: AddressSchema
    notes: Optional[str] = None
    canBeCancelled: bool
    created_at: datetime
    updated_at: datetime
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, order: Order, product_names: Optional[dict[str, str]] = None) -> "OrderResponse":
        names = product_names or {}
        return cls(
            id=order.id,
            orderNumber=order.order_number,
            status=order.status.value,
            paymentStatus=order.payment_status.value,
            paymentId=order.payment_id,
            items=[
                OrderItemResponse(
                    productId=i.product_id,
                    productName=names.get(i.product_id),
                    quantity=i.quantity,
                    unitPrice=MoneyResponse.from_money(i.unit_price),
                    totalPrice=MoneyResponse.from_money(i.total_price()),
                )
                for i in order.items
            ],
            totalAmount=MoneyResponse.from_money(order.total_amount),
            totalItemCount=order.get_total_item_count(),
            shippingAddress=AddressSchema.from_value_object(order.shipping_address),
            billingAddress=AddressSchema.from_value_object(order.billing_address),
            notes=order.notes,
            canBeCancelled=order.can_be_cancelled(),
            created_at=order.created_at,
            updated_at=order.updated_at,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
        )


class PaymentResponse(BaseModel):
    success: bool
    message: str
    paymentId: Optional[str] = None
    order: OrderResponse


class CurrencyRevenue(BaseModel):
    """Paid revenue in one currency"""

    currency: str
    paidOrders: int
    revenue: MoneyResponse
    averageOrderValue: MoneyResponse


class OrderAnalyticsResponse(BaseModel):
    """Admin order overview for an optional creation-date range"""

    startDate: Optional[date] = None
    endDate: Optional[date] = None
    totalOrders: int
    pendingOrders: int
    deliveredOrders: int
    cancelledOrders: int
    refundedOrders: int
    refundRate: float
    byStatus: dict[str, int]
    revenue: list[CurrencyRevenue]
