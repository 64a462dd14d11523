"""
Validation utilities for amounts typed into forms
"""
import re
from decimal import Decimal, InvalidOperation


def normalize_decimal_input(value: str) -> str:
    """
    Normalise an amount typed by a user: drop spaces, comma -> point

    Example:
        >>> normalize_decimal_input("50 000 000")
        "50000000"
        >>> normalize_decimal_input("12,5")
        "12.5"
    """
    return value.strip().replace(" ", "").replace(",", ".")


def validate_decimal_amount(value: str, max_decimal_places: int = 2) -> tuple[bool, str | None]:
    """
    Check a money / quantity string

    Returns:
        (is_valid, error_message)

    Example:
        >>> validate_decimal_amount("100.50")
        (True, None)
        >>> validate_decimal_amount("-1")
        (False, "Amount cannot be negative")
    """
    normalized = normalize_decimal_input(value)

    try:
        decimal_value = Decimal(normalized)
    except (InvalidOperation, ValueError):
        return False, "Invalid amount"

    if decimal_value < 0:
        return False, "Amount cannot be negative"

    pattern = rf"^\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        return False, f"At most {max_decimal_places} decimal places"

    return True, None


def validate_and_normalize_amount(value: str, max_decimal_places: int = 2) -> str:
    """
    Validate and normalise (raise on error)

    Raises:
        ValueError: invalid amount
    """
    is_valid, error = validate_decimal_amount(value, max_decimal_places)
    if not is_valid:
        raise ValueError(error)

    return normalize_decimal_input(value)
