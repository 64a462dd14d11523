"""
Money formatting for dashboards and reports.

Usage:
    from communityfund.utils.money import format_money, format_compact

    format_money(12500)              -> "12 500 VND"
    format_compact(45_000_000)       -> "45.0M VND"
    format_compact(1_200_000_000)    -> "1.20B VND"
"""
from decimal import Decimal

_BILLION = Decimal("1000000000")
_MILLION = Decimal("1000000")


def _to_decimal(amount) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def format_money(amount, currency: str = "VND", decimals: int = 0) -> str:
    """
    Full amount with space thousands separators and the currency code.

    Args:
        amount: int / float / Decimal / str / None
        currency: ISO code (VND by default, no minor unit in practice)
        decimals: digits after the point
    """
    value = _to_decimal(amount)
    fmt = f"{{:,.{decimals}f}}"
    formatted = fmt.format(value).replace(",", " ")
    return f"{formatted} {currency}"


def format_compact(amount, currency: str = "VND") -> str:
    """Billions with 2 decimals, millions with 1, smaller amounts in full."""
    value = _to_decimal(amount)
    if value >= _BILLION:
        return f"{value / _BILLION:.2f}B {currency}"
    if value >= _MILLION:
        return f"{value / _MILLION:.1f}M {currency}"
    return format_money(value, currency)
