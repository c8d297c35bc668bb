"""Immutable value objects: Money, Address, PatientInfo"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from ..config import DEFAULT_CURRENCY
from .errors import CurrencyMismatchError, ValidationError

Number = Union[int, str, Decimal]


class Currency(str, Enum):
    USD = "USD"
    BHD = "BHD"

    @classmethod
    def parse(cls, value: Union[str, "Currency", None]) -> "Currency":
        if isinstance(value, Currency):
            return value
        if value is None or not str(value).strip():
            raise ValidationError("Currency cannot be empty")
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(f"Unsupported currency: {value}") from None


# Digits after the decimal point in each currency's smallest unit
MINOR_UNITS = {Currency.USD: 2, Currency.BHD: 3}


def default_currency() -> Currency:
    return Currency.parse(DEFAULT_CURRENCY)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        # floats go through str() so 0.1 stays 0.1
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}") from None


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        amount = _to_decimal(self.amount)
        if not amount.is_finite():
            raise ValidationError("Amount must be a finite number")
        if amount < 0:
            raise ValidationError("Amount cannot be negative")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", Currency.parse(self.currency))

    @classmethod
    def create(cls, amount: Number, currency: Union[str, Currency, None] = None) -> "Money":
        return cls(_to_decimal(amount), currency if currency is not None else default_currency())

    @classmethod
    def zero(cls, currency: Union[str, Currency, None] = None) -> "Money":
        return cls.create(0, currency)

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.value, other.currency.value)

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._check_currency(other)
        if other.amount > self.amount:
            raise ValidationError("Subtraction would result in a negative amount")
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: Number) -> "Money":
        factor = _to_decimal(factor)
        if factor < 0:
            raise ValidationError("Factor cannot be negative")
        return Money(self.amount * factor, self.currency)

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply

    def rounded(self) -> Decimal:
        """Amount quantized to the currency's minor unit"""
        exponent = Decimal(1).scaleb(-MINOR_UNITS[self.currency])
        return self.amount.quantize(exponent, rounding=ROUND_HALF_UP)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)} {self.currency.value}"


def _required(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} cannot be empty")
    return value.strip()


@dataclass(frozen=True)
class Address:
    street: str
    city: str
    state: str
    postal_code: str
    country: str

    @classmethod
    def create(
        cls,
        street: Optional[str],
        city: Optional[str],
        state: Optional[str],
        postal_code: Optional[str],
        country: Optional[str],
    ) -> "Address":
        return cls(
            street=_required(street, "Street"),
            city=_required(city, "City"),
            state=(state or "").strip(),
            postal_code=(postal_code or "").strip(),
            country=_required(country, "Country"),
        )

    def __str__(self) -> str:
        parts = [self.street, self.city, self.state, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)


@dataclass(frozen=True)
class PatientInfo:
    patient_name: str
    patient_age: int
    medical_history: Optional[str] = None
    current_concerns: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None

    @classmethod
    def create(
        cls,
        patient_name: Optional[str],
        patient_age: int,
        medical_history: Optional[str] = None,
        current_concerns: Optional[str] = None,
        emergency_contact: Optional[str] = None,
        emergency_phone: Optional[str] = None,
    ) -> "PatientInfo":
        if patient_age < 0 or patient_age > 150:
            raise ValidationError("Patient age must be between 0 and 150")
        return cls(
            patient_name=_required(patient_name, "Patient name"),
            patient_age=patient_age,
            medical_history=medical_history.strip() if medical_history else None,
            current_concerns=current_concerns.strip() if current_concerns else None,
            emergency_contact=emergency_contact.strip() if emergency_contact else None,
            emergency_phone=emergency_phone.strip() if emergency_phone else None,
        )
