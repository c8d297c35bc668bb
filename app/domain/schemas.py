"""Schemas shared across domains"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ..shared.validators import validate_currency
from .value_objects import Address, Money


class MoneyResponse(BaseModel):
    """Money as returned to clients; amount serializes as an exact decimal string"""

    amount: Decimal
    currency: str
    formatted: str

    @classmethod
    def from_money(cls, money: Money) -> "MoneyResponse":
        return cls(amount=money.rounded(), currency=money.currency.value, formatted=str(money))


class MoneyInput(BaseModel):
    amount: Decimal
    currency: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v < 0:
            raise ValueError("Amount cannot be negative")
        return v

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v):
        if v:
            return validate_currency(v)
        return v


class AddressSchema(BaseModel):
    street: str
    city: str
    state: Optional[str] = None
    postalCode: Optional[str] = None
    country: str

    def to_value_object(self) -> Address:
        return Address.create(self.street, self.city, self.state, self.postalCode, self.country)

    @classmethod
    def from_value_object(cls, address: Address) -> "AddressSchema":
        return cls(
            street=address.street,
            city=address.city,
            state=address.state,
            postalCode=address.postal_code,
            country=address.country,
        )


class MessageResponse(BaseModel):
    success: bool = True
    message: str
