from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


AmountField = Literal["from_amount", "to_amount"]


class CurrencySlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    amount: str = ""  # raw numeric text, never parsed


class SwapState(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: CurrencySlot = Field(alias="from")
    to: CurrencySlot


class FieldError(BaseModel):
    field: AmountField
    message: str


class SwapConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fee_percent: float = Field(ge=0, le=100)
    initial_from_currency: str
    initial_to_currency: str
    rates: dict[str, float]
    currency_options: list[str] = Field(min_length=1)
    min_exchangeable_amount: float = 0.000001
    max_integer_digits: int = 17
    max_decimal_digits: int = 6
    debounce_seconds: float = Field(default=0.3, ge=0)


# ── Response models ──────────────────────────────────────────────────────────

class SwapSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: CurrencySlot = Field(alias="from")
    to: CurrencySlot
    current_rate: Optional[float]
    fee: str
    receive_amount: str
    error: list[FieldError]
    is_from_amount_calculating: bool
    is_to_amount_calculating: bool


class ExchangeReceipt(BaseModel):
    exchanged: str
    exchanged_currency: str
    received: str
    received_currency: str


class SessionView(SwapSnapshot):
    session_id: str
    location: Optional[str] = None
    receipt: Optional[ExchangeReceipt] = None


# ── Request models ───────────────────────────────────────────────────────────

class AmountChange(BaseModel):
    amount: str


class CurrencyChange(BaseModel):
    currency: str
