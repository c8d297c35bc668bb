"""Shared validation utilities"""

import re
from typing import Optional

SUPPORTED_CURRENCIES = {"USD", "BHD"}

# Bookable appointment lengths, in minutes
MIN_APPOINTMENT_MINUTES = 15
MAX_APPOINTMENT_MINUTES = 240


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an international phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+XXXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    # E.164 allows up to 15 digits; anything under 8 is not a real number
    if len(digits) < 8 or len(digits) > 15:
        raise ValueError("Phone number must have between 8 and 15 digits")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_currency(currency: str) -> str:
    """Normalize a currency code and make sure the shop supports it"""
    code = currency.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValueError(f"Unsupported currency: {currency}. Use one of {sorted(SUPPORTED_CURRENCIES)}")
    return code


def validate_quantity(quantity: int, allow_zero: bool = False) -> int:
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise ValueError("Quantity must be positive" if not allow_zero else "Quantity cannot be negative")
    return quantity


def validate_duration_minutes(minutes: int) -> int:
    if minutes < MIN_APPOINTMENT_MINUTES or minutes > MAX_APPOINTMENT_MINUTES:
        raise ValueError(
            f"Duration must be between {MIN_APPOINTMENT_MINUTES} and {MAX_APPOINTMENT_MINUTES} minutes"
        )
    return minutes
