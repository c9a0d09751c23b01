import logging
import threading
from typing import Callable, Optional

from currency_swap.currency import (
    convert_forward,
    convert_inverse,
    format_output_amount,
    parse_amount,
    resolve_rate,
)
from currency_swap.debounce import Debouncer, Scheduler
from currency_swap.errors import SessionClosed
from currency_swap.location import LocationSync
from currency_swap.models import CurrencySlot, FieldError, SwapConfig, SwapSnapshot, SwapState
from currency_swap.validation import validate_amounts

logger = logging.getLogger(__name__)


class CurrencySwap:
    """Two-way conversion form state.

    Owns the (from, to) pair. Amount edits land immediately and the
    counterpart follows after the debounce window; currency changes and
    swaps recompute synchronously. Fee, receive amount, rate and errors
    are derived from the current state on every read.
    """

    def __init__(
        self,
        config: SwapConfig,
        on_swap_success: Optional[Callable[[], None]] = None,
        location: Optional[LocationSync] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = config
        self._on_swap_success = on_swap_success
        self._location = location
        self._lock = threading.RLock()
        self._disposed = False

        self._state = SwapState(
            from_=CurrencySlot(currency=config.initial_from_currency),
            to=CurrencySlot(currency=config.initial_to_currency),
        )
        self._from_amount_calculating = False
        self._to_amount_calculating = False
        self._edit_seq = 0

        wait = config.debounce_seconds
        self._to_amount_debounce = Debouncer(self._propagate_from_amount, wait, scheduler)
        self._from_amount_debounce = Debouncer(self._propagate_to_amount, wait, scheduler)

        self._publish_location()

    # ── state ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SwapState:
        return self._state

    @property
    def from_currency(self) -> CurrencySlot:
        return self._state.from_

    @property
    def to_currency(self) -> CurrencySlot:
        return self._state.to

    @property
    def current_rate(self) -> Optional[float]:
        state = self._state
        return resolve_rate(state.from_.currency, state.to.currency, self.config.rates)

    @property
    def fee(self) -> str:
        output = parse_amount(self._state.to.amount)
        return format_output_amount(output * self.config.fee_percent / 100)

    @property
    def receive_amount(self) -> str:
        output = parse_amount(self._state.to.amount)
        fee = parse_amount(format_output_amount(output * self.config.fee_percent / 100))
        return format_output_amount(output - fee)

    @property
    def error(self) -> list[FieldError]:
        state = self._state
        return validate_amounts(
            state.from_.amount,
            state.to.amount,
            self.config.min_exchangeable_amount,
            self.config.max_integer_digits,
        )

    @property
    def is_from_amount_calculating(self) -> bool:
        return self._from_amount_calculating

    @property
    def is_to_amount_calculating(self) -> bool:
        return self._to_amount_calculating

    @property
    def disposed(self) -> bool:
        return self._disposed

    def snapshot(self) -> SwapSnapshot:
        with self._lock:
            state = self._state
            return SwapSnapshot(
                from_=state.from_,
                to=state.to,
                current_rate=self.current_rate,
                fee=self.fee,
                receive_amount=self.receive_amount,
                error=self.error,
                is_from_amount_calculating=self._from_amount_calculating,
                is_to_amount_calculating=self._to_amount_calculating,
            )

    # ── amount edits ──────────────────────────────────────────────────────────

    def on_from_amount_change(self, value: str) -> None:
        with self._lock:
            self._ensure_open()
            self._from_amount_debounce.cancel()
            self._from_amount_calculating = False
            self._replace(from_=self._state.from_.model_copy(update={"amount": value}))
            self._to_amount_calculating = True
            self._to_amount_debounce((value, self._next_edit()))

    def on_to_amount_change(self, value: str) -> None:
        with self._lock:
            self._ensure_open()
            self._to_amount_debounce.cancel()
            self._to_amount_calculating = False
            self._replace(to=self._state.to.model_copy(update={"amount": value}))
            self._from_amount_calculating = True
            self._from_amount_debounce((value, self._next_edit()))

    def _propagate_from_amount(self, edit: tuple[str, int]) -> None:
        value, seq = edit
        with self._lock:
            if self._disposed:
                return
            if seq != self._edit_seq:
                # superseded by a newer edit on either side
                if not self._to_amount_debounce.pending:
                    self._to_amount_calculating = False
                return
            state = self._state
            to_amount = convert_forward(
                value, state.from_.currency, state.to.currency, self.config.rates
            )
            if to_amount is not None:
                self._replace(to=state.to.model_copy(update={"amount": to_amount}))
                logger.debug("to amount recomputed: %s %s", to_amount, state.to.currency)
            self._to_amount_calculating = False

    def _propagate_to_amount(self, edit: tuple[str, int]) -> None:
        value, seq = edit
        with self._lock:
            if self._disposed:
                return
            if seq != self._edit_seq:
                if not self._from_amount_debounce.pending:
                    self._from_amount_calculating = False
                return
            state = self._state
            from_amount = convert_inverse(
                value, state.from_.currency, state.to.currency, self.config.rates
            )
            if from_amount is not None:
                self._replace(from_=state.from_.model_copy(update={"amount": from_amount}))
                logger.debug("from amount recomputed: %s %s", from_amount, state.from_.currency)
            self._from_amount_calculating = False

    # ── currency selection ────────────────────────────────────────────────────

    def on_from_currency_change(self, currency: str) -> None:
        with self._lock:
            self._ensure_open()
            prev = self._state
            if currency == prev.from_.currency:
                return
            to_currency = prev.to.currency
            if currency == to_currency:
                to_currency = self._fallback_currency(currency)
            self._cancel_pending()
            to_amount = convert_forward(prev.from_.amount, currency, to_currency, self.config.rates)
            self._replace(
                from_=prev.from_.model_copy(update={"currency": currency}),
                to=CurrencySlot(
                    currency=to_currency,
                    amount=prev.to.amount if to_amount is None else to_amount,
                ),
            )
            self._publish_location()

    def on_to_currency_change(self, currency: str) -> None:
        with self._lock:
            self._ensure_open()
            prev = self._state
            if currency == prev.to.currency:
                return
            from_currency = prev.from_.currency
            if currency == from_currency:
                from_currency = self._fallback_currency(currency)
            self._cancel_pending()
            to_amount = convert_forward(prev.from_.amount, from_currency, currency, self.config.rates)
            self._replace(
                from_=prev.from_.model_copy(update={"currency": from_currency}),
                to=CurrencySlot(
                    currency=currency,
                    amount=prev.to.amount if to_amount is None else to_amount,
                ),
            )
            self._publish_location()

    def on_handle_swap(self) -> None:
        with self._lock:
            self._ensure_open()
            prev = self._state
            new_from, new_to = prev.to.currency, prev.from_.currency
            to_amount = convert_forward(prev.from_.amount, new_from, new_to, self.config.rates)
            if to_amount is None:
                logger.warning("swap %s ⇄ %s aborted: rate not available", new_to, new_from)
                return
            self._cancel_pending()
            self._replace(
                from_=CurrencySlot(currency=new_from, amount=prev.from_.amount),
                to=CurrencySlot(currency=new_to, amount=to_amount),
            )
            self._publish_location()

    def on_handle_exchange(self) -> None:
        self._ensure_open()
        if self._on_swap_success is not None:
            self._on_swap_success()

    # ── lifecycle ─────────────────────────────────────────────────────────────

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._cancel_pending()
        logger.debug("swap disposed")

    def __enter__(self) -> "CurrencySwap":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    # ── helpers ───────────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._disposed:
            raise SessionClosed()

    def _cancel_pending(self) -> None:
        # superseded by the synchronous recompute from the from side
        self._next_edit()
        self._to_amount_debounce.cancel()
        self._from_amount_debounce.cancel()
        self._to_amount_calculating = False
        self._from_amount_calculating = False

    def _next_edit(self) -> int:
        self._edit_seq += 1
        return self._edit_seq

    def _replace(self, **slots: CurrencySlot) -> None:
        # single assignment; readers never see a half-updated pair
        self._state = self._state.model_copy(update=slots)

    def _fallback_currency(self, exclude: str) -> str:
        options = self.config.currency_options
        return next((c for c in options if c != exclude), options[0])

    def _publish_location(self) -> None:
        if self._location is not None:
            state = self._state
            self._location.publish(state.from_.currency, state.to.currency)
