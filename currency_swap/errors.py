import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class SwapError(Exception):
    code = "swap_error"
    status_code = status.HTTP_400_BAD_REQUEST


class SessionNotFound(SwapError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Swap session '{session_id}' not found")


class SessionClosed(SwapError):
    code = "session_closed"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self) -> None:
        super().__init__("Swap session has been disposed")


class UnsupportedCurrency(SwapError):
    code = "unsupported_currency"
    status_code = 422

    def __init__(self, currency: str) -> None:
        super().__init__(f"Currency '{currency}' is not supported")


class InvalidAmount(SwapError):
    code = "invalid_amount"
    status_code = 422

    def __init__(self, amount: str) -> None:
        super().__init__(f"'{amount}' is not an acceptable amount")


class ExchangeBlocked(SwapError):
    code = "exchange_blocked"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self) -> None:
        super().__init__("Exchange needs two non-zero amounts and no validation errors")


def swap_error_handler(request: Request, exc: SwapError):  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": str(exc)},
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "not_found" if exc.status_code == 404 else "http_error",
            "detail": exc.detail,
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "detail": exc.errors(),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
