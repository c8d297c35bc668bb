"""Order repository - Database operations for orders"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ... import models
from ..state_machine import utcnow
from ..value_objects import Address, Money
from .aggregate import Order, OrderItem, OrderStatus, PaymentStatus


def _address(row: models.Order, prefix: str) -> Address:
    return Address(
        street=getattr(row, f"{prefix}_street"),
        city=getattr(row, f"{prefix}_city"),
        state=getattr(row, f"{prefix}_state") or "",
        postal_code=getattr(row, f"{prefix}_postal_code") or "",
        country=getattr(row, f"{prefix}_country"),
    )


def _set_address(row: models.Order, prefix: str, address: Address) -> None:
    setattr(row, f"{prefix}_street", address.street)
    setattr(row, f"{prefix}_city", address.city)
    setattr(row, f"{prefix}_state", address.state)
    setattr(row, f"{prefix}_postal_code", address.postal_code)
    setattr(row, f"{prefix}_country", address.country)


def to_domain(row: models.Order) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        user_id=row.user_id,
        shipping_address=_address(row, "shipping"),
        billing_address=_address(row, "billing"),
        items=[
            OrderItem(
                product_id=i.product_id,
                quantity=i.quantity,
                unit_price=Money.create(i.unit_price_amount, i.unit_price_currency),
            )
            for i in row.items
        ],
        total_amount=Money.create(row.total_amount, row.currency),
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        payment_id=row.payment_id,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        shipped_at=row.shipped_at,
        delivered_at=row.delivered_at,
    )


def _apply(row: models.Order, order: Order) -> None:
    row.order_number = order.order_number
    row.user_id = order.user_id
    row.total_amount = order.total_amount.amount
    row.currency = order.total_amount.currency.value
    row.status = order.status.value
    row.payment_status = order.payment_status.value
    row.payment_id = order.payment_id
    row.notes = order.notes
    row.created_at = order.created_at
    row.updated_at = order.updated_at
    row.shipped_at = order.shipped_at
    row.delivered_at = order.delivered_at
    _set_address(row, "shipping", order.shipping_address)
    _set_address(row, "billing", order.billing_address)

    existing = {i.product_id: i for i in row.items}
    wanted = {i.product_id for i in order.items}
    for product_id, item_row in existing.items():
        if product_id not in wanted:
            row.items.remove(item_row)

    for position, item in enumerate(order.items):
        item_row = existing.get(item.product_id)
        if item_row is None:
            item_row = models.OrderItem(product_id=item.product_id)
            row.items.append(item_row)
        item_row.position = position
        item_row.quantity = item.quantity
        item_row.unit_price_amount = item.unit_price.amount
        item_row.unit_price_currency = item.unit_price.currency.value


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def _query(db: Session):
        return db.query(models.Order).options(selectinload(models.Order.items))

    @staticmethod
    def get_by_id(db: Session, order_id: str) -> Optional[Order]:
        row = OrderRepository._query(db).filter(models.Order.id == order_id).first()
        return to_domain(row) if row else None

    @staticmethod
    def get_by_order_number(db: Session, order_number: str) -> Optional[Order]:
        row = OrderRepository._query(db).filter(models.Order.order_number == order_number).first()
        return to_domain(row) if row else None

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[Order]:
        rows = (
            OrderRepository._query(db)
            .filter(models.Order.user_id == user_id)
            .order_by(models.Order.created_at.desc())
            .all()
        )
        return [to_domain(r) for r in rows]

    @staticmethod
    def list_all(db: Session, status: Optional[OrderStatus] = None, limit: int = 100) -> list[Order]:
        query = OrderRepository._query(db)
        if status:
            query = query.filter(models.Order.status == status.value)
        rows = query.order_by(models.Order.created_at.desc()).limit(limit).all()
        return [to_domain(r) for r in rows]

    @staticmethod
    def add(db: Session, order: Order) -> Order:
        row = models.Order(id=order.id)
        _apply(row, order)
        db.add(row)
        db.flush()
        return order

    @staticmethod
    def update(db: Session, order: Order) -> Order:
        row = OrderRepository._query(db).filter(models.Order.id == order.id).first()
        _apply(row, order)
        db.flush()
        return order

    @staticmethod
    def generate_order_number(db: Session) -> str:
        """Next number in the ORD-<year>-<sequence> series"""
        prefix = f"ORD-{utcnow().year}-"
        latest = (
            db.query(models.Order.order_number)
            .filter(models.Order.order_number.like(f"{prefix}%"))
            .order_by(models.Order.order_number.desc())
            .first()
        )
        sequence = int(latest[0][len(prefix):]) + 1 if latest else 1
        return f"{prefix}{sequence:06d}"

    @staticmethod
    def get_analytics(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Order counts per status and paid revenue per currency, for orders created in [start, end)"""
        filters = []
        if start:
            filters.append(models.Order.created_at >= start)
        if end:
            filters.append(models.Order.created_at < end)

        status_counts = (
            db.query(models.Order.status, func.count(models.Order.id))
            .filter(*filters)
            .group_by(models.Order.status)
            .all()
        )

        revenue = (
            db.query(models.Order.currency, func.count(models.Order.id), func.sum(models.Order.total_amount))
            .filter(*filters, models.Order.payment_status == PaymentStatus.COMPLETED.value)
            .group_by(models.Order.currency)
            .order_by(models.Order.currency)
            .all()
        )

        return {
            "status_counts": {status: count for status, count in status_counts},
            "revenue": [(currency, count, total or 0) for currency, count, total in revenue],
        }
