import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value).strip(), quote=True)


def validate_and_sanitize_input(value: Optional[str], max_length: int = 2000) -> Optional[str]:
    """
    Validate and sanitize free-text input such as notes.

    Args:
        value: Input string to validate
        max_length: Maximum allowed length

    Returns:
        Sanitized string, or None for empty input

    Raises:
        ValueError: If input is too long
    """
    if value is None:
        return None

    value = str(value).strip()
    if not value:
        return None

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return html.escape(value, quote=True)
