from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from currency_swap import errors
from currency_swap.config import Settings, get_settings
from currency_swap.currency import CURRENCY_OPTIONS, CURRENCY_RATE
from currency_swap.debounce import LoopScheduler, ThreadScheduler
from currency_swap.errors import ExchangeBlocked, InvalidAmount, SwapError, UnsupportedCurrency
from currency_swap.formatting import sanitize_amount_input
from currency_swap.location import initial_currency
from currency_swap.logging import init_logging, request_context_middleware
from currency_swap.models import AmountChange, CurrencyChange
from currency_swap.store import SessionStore, SwapSession

SCHEDULERS = {"loop": LoopScheduler, "thread": ThreadScheduler}


def create_app(
    settings: Optional[Settings] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """Application factory; tests pass their own settings and store."""
    settings = settings or get_settings()
    sessions = session_store if session_store is not None else SessionStore(
        scheduler_factory=SCHEDULERS[settings.scheduler],
        idle_ttl_seconds=settings.session_idle_ttl_seconds,
    )
    init_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # pending debounce timers must not outlive the loop they were scheduled on
        sessions.clear()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        description="Two-way currency conversion sessions with fee and validation",
        lifespan=lifespan,
    )
    app.state.sessions = sessions

    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(SwapError, errors.swap_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    def clean_amount(session: SwapSession, payload: AmountChange) -> str:
        config = session.swap.config
        amount = sanitize_amount_input(
            payload.amount, config.max_integer_digits, config.max_decimal_digits
        )
        if amount is None:
            raise InvalidAmount(payload.amount)
        return amount

    def supported(session: SwapSession, payload: CurrencyChange) -> str:
        if payload.currency not in session.swap.config.currency_options:
            raise UnsupportedCurrency(payload.currency)
        return payload.currency

    # ── Meta ──────────────────────────────────────────────────────────────────

    @app.get("/health", summary="Liveness probe")
    async def health():
        return {"status": "ok", "sessions": len(sessions)}

    @app.get("/api/v1/currencies", summary="Currency options, rates and fee")
    async def list_currencies():
        return {
            "currencies": CURRENCY_OPTIONS,
            "rates": CURRENCY_RATE,
            "fee_percent": settings.fee_percent,
        }

    # ── Sessions ──────────────────────────────────────────────────────────────

    @app.post("/api/v1/swaps", status_code=201, summary="Open a swap session")
    async def open_swap(
        from_currency: Optional[str] = Query(default=None, alias="from"),
        to_currency: Optional[str] = Query(default=None, alias="to"),
    ):
        config = settings.swap_config(
            initial_currency(from_currency, CURRENCY_OPTIONS, settings.default_from_currency),
            initial_currency(to_currency, CURRENCY_OPTIONS, settings.default_to_currency),
        )
        session = sessions.create(config, settings.location_path)
        return session.view().model_dump(by_alias=True)

    @app.get("/api/v1/swaps/{session_id}", summary="Current state of a swap session")
    async def get_swap(session_id: str):
        return sessions.get(session_id).view().model_dump(by_alias=True)

    @app.delete("/api/v1/swaps/{session_id}", status_code=204, summary="Close a swap session")
    async def close_swap(session_id: str):
        sessions.close(session_id)

    # ── Operations ────────────────────────────────────────────────────────────

    @app.put("/api/v1/swaps/{session_id}/from-amount", summary="Edit the amount to send")
    async def change_from_amount(session_id: str, payload: AmountChange):
        session = sessions.get(session_id)
        session.swap.on_from_amount_change(clean_amount(session, payload))
        return session.view().model_dump(by_alias=True)

    @app.put("/api/v1/swaps/{session_id}/to-amount", summary="Edit the amount to receive")
    async def change_to_amount(session_id: str, payload: AmountChange):
        session = sessions.get(session_id)
        session.swap.on_to_amount_change(clean_amount(session, payload))
        return session.view().model_dump(by_alias=True)

    @app.put("/api/v1/swaps/{session_id}/from-currency", summary="Select the currency to send")
    async def change_from_currency(session_id: str, payload: CurrencyChange):
        session = sessions.get(session_id)
        session.swap.on_from_currency_change(supported(session, payload))
        return session.view().model_dump(by_alias=True)

    @app.put("/api/v1/swaps/{session_id}/to-currency", summary="Select the currency to receive")
    async def change_to_currency(session_id: str, payload: CurrencyChange):
        session = sessions.get(session_id)
        session.swap.on_to_currency_change(supported(session, payload))
        return session.view().model_dump(by_alias=True)

    @app.post("/api/v1/swaps/{session_id}/swap", summary="Swap the two currencies")
    async def swap_currencies(session_id: str):
        session = sessions.get(session_id)
        session.swap.on_handle_swap()
        return session.view().model_dump(by_alias=True)

    @app.post("/api/v1/swaps/{session_id}/exchange", summary="Confirm the exchange")
    async def exchange(session_id: str):
        session = sessions.get(session_id)
        if not session.can_exchange():
            raise ExchangeBlocked()
        session.swap.on_handle_exchange()
        return session.view().model_dump(by_alias=True)

    return app


app = create_app()
