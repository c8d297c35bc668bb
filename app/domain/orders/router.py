"""Order router - FastAPI endpoints for checkout, payment and fulfilment"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...services.payment_service import StripePaymentService, get_payment_service
from .aggregate import OrderStatus
from .schemas import (
    CheckoutRequest,
    OrderAnalyticsResponse,
    OrderResponse,
    PaymentResponse,
    PayOrderRequest,
    RefundOrderRequest,
)
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(
    db: Session = Depends(get_db),
    payments: StripePaymentService = Depends(get_payment_service),
) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db, payments)


@router.post("/checkout", response_model=OrderResponse, status_code=201)
async def checkout(
    data: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Create an order from the current cart"""
    return service.to_response(service.checkout(current_user, data))


@router.get("", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return [service.to_response(o) for o in service.list_for_user(current_user)]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return service.to_response(service.get_order(current_user, order_id))


@router.post("/{order_id}/pay", response_model=PaymentResponse)
async def pay_order(
    order_id: str,
    data: PayOrderRequest,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order, success, error = await service.pay(current_user, order_id, data.paymentMethodId)
    return PaymentResponse(
        success=success,
        message="Payment completed" if success else error,
        paymentId=order.payment_id,
        order=service.to_response(order),
    )


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Cancel an order (owner or admin); items go back into stock"""
    order = await service.cancel(current_user, order_id)
    return service.to_response(order)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin/all", response_model=list[OrderResponse])
async def list_all_orders(
    status: Optional[OrderStatus] = Query(None),
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return [service.to_response(o) for o in service.list_all(status)]


@router.get("/admin/analytics", response_model=OrderAnalyticsResponse)
async def get_order_analytics(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Order counts by status and paid revenue per currency"""
    return service.analytics(start_date, end_date)


@router.post("/{order_id}/confirm", response_model=OrderResponse)
async def confirm_order(
    order_id: str,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return service.to_response(service.transition(order_id, "confirm"))


@router.post("/{order_id}/start-processing", response_model=OrderResponse)
async def start_processing_order(
    order_id: str,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return service.to_response(service.transition(order_id, "start_processing"))


@router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: str,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return service.to_response(service.transition(order_id, "ship"))


@router.post("/{order_id}/deliver", response_model=OrderResponse)
async def deliver_order(
    order_id: str,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    return service.to_response(service.transition(order_id, "deliver"))


@router.post("/{order_id}/refund", response_model=OrderResponse)
async def refund_order(
    order_id: str,
    data: Optional[RefundOrderRequest] = None,
    _admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = await service.refund(order_id, data.reason if data else None)
    return service.to_response(order)
