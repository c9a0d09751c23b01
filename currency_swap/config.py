from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from currency_swap.currency import CURRENCY_OPTIONS, CURRENCY_RATE, FEE_PERCENT
from currency_swap.models import SwapConfig


class Settings(BaseSettings):
    """Service settings, read from ``CURRENCY_SWAP_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="CURRENCY_SWAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Currency Swap Service"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Logging level")

    fee_percent: float = Field(default=FEE_PERCENT, ge=0, le=100)
    debounce_seconds: float = Field(default=0.3, ge=0, description="Quiet period before recomputing")
    min_exchangeable_amount: float = Field(default=0.000001, gt=0)
    max_integer_digits: int = Field(default=17, gt=0)
    max_decimal_digits: int = Field(default=6, ge=0)

    default_from_currency: str = "MYR"
    default_to_currency: str = "EUR"
    location_path: str = "/swap"
    scheduler: Literal["loop", "thread"] = Field(
        default="loop", description="Debounce timers on the asyncio loop or on threads"
    )
    session_idle_ttl_seconds: Optional[float] = Field(
        default=1800, gt=0, description="Idle sessions older than this are evicted; None keeps them"
    )

    def swap_config(self, from_currency: str, to_currency: str) -> SwapConfig:
        return SwapConfig(
            fee_percent=self.fee_percent,
            initial_from_currency=from_currency,
            initial_to_currency=to_currency,
            rates=CURRENCY_RATE,
            currency_options=CURRENCY_OPTIONS,
            min_exchangeable_amount=self.min_exchangeable_amount,
            max_integer_digits=self.max_integer_digits,
            max_decimal_digits=self.max_decimal_digits,
            debounce_seconds=self.debounce_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
