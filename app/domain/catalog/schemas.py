"""Catalog domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...utils.sanitization import sanitize_string
from ..schemas import MoneyInput, MoneyResponse
from .aggregate import Product


class ProductCreate(BaseModel):
    """Schema for creating a new product"""

    name: str
    sku: str
    price: MoneyInput
    stockQuantity: int = 0
    description: Optional[str] = None

    @field_validator("name", "description")
    @classmethod
    def clean_text(cls, v):
        if v:
            return sanitize_string(v)
        return v

    @field_validator("stockQuantity")
    @classmethod
    def validate_stock(cls, v):
        if v < 0:
            raise ValueError("Stock quantity cannot be negative")
        return v


class ProductUpdate(BaseModel):
    """Schema for replacing a product's name, description and price"""

    name: str
    price: MoneyInput
    description: Optional[str] = None

    @field_validator("name", "description")
    @classmethod
    def clean_text(cls, v):
        if v:
            return sanitize_string(v)
        return v


class StockUpdate(BaseModel):
    """Schema for setting absolute stock"""

    stockQuantity: int

    @field_validator("stockQuantity")
    @classmethod
    def validate_stock(cls, v):
        if v < 0:
            raise ValueError("Stock quantity cannot be negative")
        return v


class ProductResponse(BaseModel):
    """Schema for product response"""

    id: str
    name: str
    sku: str
    description: Optional[str] = None
    price: MoneyResponse
    stockQuantity: int
    isActive: bool
    inStock: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            sku=product.sku,
            description=product.description,
            price=MoneyResponse.from_money(product.price),
            stockQuantity=product.stock_quantity,
            isActive=product.is_active,
            inStock=product.is_in_stock(),
            created_at=product.created_at,
        )
