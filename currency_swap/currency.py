import logging
import math
from collections.abc import Mapping
from typing import Optional

logger = logging.getLogger(__name__)

# Approximate rates against USD
# 1 USD → X units of the currency
CURRENCY_RATE: dict[str, float] = {
    "HKD": 7.798926,
    "AUD": 1.487089,
    "MYR": 4.375,
    "GBP": 0.761538,
    "EUR": 0.899038,
    "IDR": 15538.905259,
    "NZD": 1.625053,
    "CNY": 7.1369,
    "CZK": 22.549,
    "AED": 3.672815,
}

CURRENCY_OPTIONS: list[str] = list(CURRENCY_RATE)

FEE_PERCENT = 1.0

_OUTPUT_DECIMALS = 6


def resolve_rate(from_currency: str, to_currency: str, rates: Mapping[str, float]) -> Optional[float]:
    """Units of ``to_currency`` per 1 unit of ``from_currency``, or None when unavailable."""
    if from_currency == to_currency:
        return 1.0
    from_rate = rates.get(from_currency)
    to_rate = rates.get(to_currency)
    if from_rate is None or to_rate is None or from_rate <= 0 or to_rate <= 0:
        return None
    return to_rate / from_rate


def parse_amount(text: str) -> float:
    """Empty text reads as zero; anything unparseable reads as NaN."""
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


def format_output_amount(value: float) -> str:
    if not math.isfinite(value) or value == 0:
        return ""
    if value.is_integer():
        return str(int(value))
    return f"{value:.{_OUTPUT_DECIMALS}f}".rstrip("0").rstrip(".")


def _convert(result: float) -> Optional[str]:
    if not math.isfinite(result):
        logger.warning("conversion produced a non-finite amount; skipped")
        return None
    return format_output_amount(result)


def convert_forward(
    amount: str, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> Optional[str]:
    """Return the ``to`` amount text for ``amount`` of ``from_currency``."""
    rate = resolve_rate(from_currency, to_currency, rates)
    if rate is None:
        logger.warning("no exchange rate for %s → %s", from_currency, to_currency)
        return None
    return _convert(parse_amount(amount) * rate)


def convert_inverse(
    amount: str, from_currency: str, to_currency: str, rates: Mapping[str, float]
) -> Optional[str]:
    """Return the ``from`` amount text that yields ``amount`` of ``to_currency``."""
    rate = resolve_rate(from_currency, to_currency, rates)
    if rate is None:
        logger.warning("no exchange rate for %s → %s", from_currency, to_currency)
        return None
    return _convert(parse_amount(amount) / rate)
