from decimal import Decimal

from currency_swap.currency import parse_amount
from currency_swap.models import AmountField, FieldError


AMOUNT_TOO_LARGE = "Amount too large"
RECEIVE_TOO_LOW = "Amount to receive is too low"


def _plain_number(value: float) -> str:
    # positional form, no exponent and no rounding of small minimums
    text = format(Decimal(str(value)), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def _integer_digits(text: str) -> int:
    return len(text.partition(".")[0])


def _check_side(
    field: AmountField,
    text: str,
    too_low_message: str,
    min_exchangeable: float,
    max_integer_digits: int,
) -> list[FieldError]:
    if not text:
        return []
    if _integer_digits(text) > max_integer_digits:
        return [FieldError(field=field, message=AMOUNT_TOO_LARGE)]
    # NaN never compares below the floor, so malformed text is not flagged here
    if parse_amount(text) < min_exchangeable:
        return [FieldError(field=field, message=too_low_message)]
    return []


def validate_amounts(
    from_amount: str,
    to_amount: str,
    min_exchangeable: float,
    max_integer_digits: int,
) -> list[FieldError]:
    """Advisory errors for the current amount pair, at most one per side.

    A too-large amount is never also reported as too small. Empty text is
    never an error.
    """
    minimum = _plain_number(min_exchangeable)
    return [
        *_check_side("from_amount", from_amount, f"Minimum amount is {minimum}",
                     min_exchangeable, max_integer_digits),
        *_check_side("to_amount", to_amount, RECEIVE_TOO_LOW,
                     min_exchangeable, max_integer_digits),
    ]
