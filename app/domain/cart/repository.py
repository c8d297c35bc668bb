"""Cart repository - Database operations for carts"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ... import models
from ..state_machine import utcnow
from ..value_objects import Money
from .aggregate import Cart, CartItem


def to_domain(row: models.Cart) -> Cart:
    return Cart(
        id=row.id,
        user_id=row.user_id,
        items=[
            CartItem(
                product_id=i.product_id,
                quantity=i.quantity,
                unit_price=Money.create(i.unit_price_amount, i.unit_price_currency),
            )
            for i in row.items
        ],
        created_at=row.created_at,
        updated_at=row.updated_at,
        expires_at=row.expires_at,
    )


def _sync_items(row: models.Cart, cart: Cart) -> None:
    """Bring the item rows in line with the aggregate, keeping existing rows where possible"""
    by_product = {i.product_id: i for i in row.items}
    wanted = {i.product_id for i in cart.items}

    for product_id, item_row in by_product.items():
        if product_id not in wanted:
            row.items.remove(item_row)

    for position, item in enumerate(cart.items):
        item_row = by_product.get(item.product_id)
        if item_row is None:
            item_row = models.CartItem(product_id=item.product_id)
            row.items.append(item_row)
        item_row.position = position
        item_row.quantity = item.quantity
        item_row.unit_price_amount = item.unit_price.amount
        item_row.unit_price_currency = item.unit_price.currency.value


class CartRepository:
    """Repository for cart database operations"""

    @staticmethod
    def _query(db: Session):
        return db.query(models.Cart).options(selectinload(models.Cart.items))

    @staticmethod
    def get_by_id(db: Session, cart_id: str) -> Optional[Cart]:
        row = CartRepository._query(db).filter(models.Cart.id == cart_id).first()
        return to_domain(row) if row else None

    @staticmethod
    def get_active_by_user_id(db: Session, user_id: str) -> Optional[Cart]:
        """Latest unexpired cart for the user"""
        now = utcnow()
        row = (
            CartRepository._query(db)
            .filter(
                models.Cart.user_id == user_id,
                (models.Cart.expires_at.is_(None)) | (models.Cart.expires_at > now),
            )
            .order_by(models.Cart.created_at.desc())
            .first()
        )
        return to_domain(row) if row else None

    @staticmethod
    def add(db: Session, cart: Cart) -> Cart:
        row = models.Cart(
            id=cart.id,
            user_id=cart.user_id,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
            expires_at=cart.expires_at,
        )
        _sync_items(row, cart)
        db.add(row)
        db.flush()
        return cart

    @staticmethod
    def update(db: Session, cart: Cart) -> Cart:
        row = CartRepository._query(db).filter(models.Cart.id == cart.id).first()
        row.updated_at = cart.updated_at
        row.expires_at = cart.expires_at
        _sync_items(row, cart)
        db.flush()
        return cart

    @staticmethod
    def delete_expired(db: Session) -> int:
        """Remove carts past their expiry; returns how many went"""
        expired = db.query(models.Cart).filter(models.Cart.expires_at <= utcnow()).all()
        for row in expired:
            db.delete(row)
        db.flush()
        return len(expired)
