"""
Numeric-text helpers used at the input boundary.

The swap engine only ever sees clean decimal text: commas stripped, at most
one decimal point, digits only, and within the configured digit limits.
"""

import re
from typing import Optional

_PARTIAL_DECIMAL = re.compile(r"(\d+)?(\.)?(\d*)?")
_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")


def format_with_commas(value: str) -> str:
    if not value:
        return ""
    integer_part, sep, decimal_part = value.partition(".")
    formatted = _THOUSANDS.sub(",", integer_part)
    return f"{formatted}.{decimal_part}" if sep else formatted


def is_within_digit_limits(
    value: str,
    max_integer_digits: Optional[int] = None,
    max_decimal_digits: Optional[int] = None,
) -> bool:
    if not value:
        return True
    integer_part, _, decimal_part = value.partition(".")
    if max_integer_digits is not None and len(integer_part) > max_integer_digits:
        return False
    if max_decimal_digits is not None and len(decimal_part) > max_decimal_digits:
        return False
    return True


def is_valid_numeric_input(value: str) -> bool:
    if value == "":
        return True
    return _PARTIAL_DECIMAL.fullmatch(value) is not None


def sanitize_amount_input(
    raw: str,
    max_integer_digits: Optional[int] = None,
    max_decimal_digits: Optional[int] = None,
) -> Optional[str]:
    """Strip thousands separators; None if the keystroke must be rejected."""
    value = raw.replace(",", "")
    if not is_valid_numeric_input(value):
        return None
    if not is_within_digit_limits(value, max_integer_digits, max_decimal_digits):
        return None
    return value
