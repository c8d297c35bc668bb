"""Cart domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_quantity
from ..schemas import MoneyResponse
from .aggregate import Cart


class AddToCartRequest(BaseModel):
    productId: str
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        return validate_quantity(v)


class UpdateCartItemRequest(BaseModel):
    """Setting quantity to 0 removes the line"""

    quantity: int

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        return validate_quantity(v, allow_zero=True)


class CartItemResponse(BaseModel):
    productId: str
    productName: Optional[str] = None
    quantity: int
    unitPrice: MoneyResponse
    totalPrice: MoneyResponse


class CartResponse(BaseModel):
    id: Optional[str] = None
    items: list[CartItemResponse]
    totalAmount: MoneyResponse
    totalItemCount: int
    expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, cart: Cart, product_names: Optional[dict[str, str]] = None) -> "CartResponse":
        names = product_names or {}
        return cls(
            id=cart.id,
            items=[
                CartItemResponse(
                    productId=i.product_id,
                    productName=names.get(i.product_id),
                    quantity=i.quantity,
                    unitPrice=MoneyResponse.from_money(i.unit_price),
                    totalPrice=MoneyResponse.from_money(i.total_price()),
                )
                for i in cart.items
            ],
            totalAmount=MoneyResponse.from_money(cart.get_total_amount()),
            totalItemCount=cart.get_total_item_count(),
            expires_at=cart.expires_at,
            updated_at=cart.updated_at,
        )


class CartMutationResponse(BaseModel):
    success: bool = True
    message: str
    cart: CartResponse
