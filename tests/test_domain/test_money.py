"""Tests for money formatting and amount input validation"""
from decimal import Decimal

import pytest

from communityfund.utils.money import format_money, format_compact
from communityfund.utils.validation import (
    normalize_decimal_input, validate_decimal_amount, validate_and_normalize_amount,
)


class TestFormatMoney:
    def test_thousands_separator(self):
        assert format_money(12500) == "12 500 VND"

    def test_none_is_zero(self):
        assert format_money(None) == "0 VND"

    def test_decimals_and_currency(self):
        assert format_money(Decimal("1234.5"), currency="USD", decimals=2) == "1 234.50 USD"


class TestFormatCompact:
    def test_billions(self):
        assert format_compact(1_200_000_000) == "1.20B VND"

    def test_millions(self):
        assert format_compact(45_000_000) == "45.0M VND"

    def test_small_amounts_in_full(self):
        assert format_compact(999_999) == "999 999 VND"


class TestAmountInput:
    def test_normalize(self):
        assert normalize_decimal_input(" 50 000 000 ") == "50000000"
        assert normalize_decimal_input("12,5") == "12.5"

    def test_valid(self):
        assert validate_decimal_amount("100.50") == (True, None)

    def test_negative(self):
        assert validate_decimal_amount("-1") == (False, "Amount cannot be negative")

    def test_too_many_decimals(self):
        ok, error = validate_decimal_amount("1.234")
        assert ok is False
        assert "decimal places" in error

    def test_garbage(self):
        assert validate_decimal_amount("abc") == (False, "Invalid amount")

    def test_validate_and_normalize_raises(self):
        assert validate_and_normalize_amount("1 500,25") == "1500.25"
        with pytest.raises(ValueError):
            validate_and_normalize_amount("x")
