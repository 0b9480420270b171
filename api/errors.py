"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    CouponInvalid,
    EmptyCart,
    InputError,
    PricingError,
    PricingInconsistency,
    ReferenceMissing,
    StockInsufficient,
)

logger = logging.getLogger(__name__)

# Most specific first: lookup walks this list in order
PRICING_ERROR_MAP: list[tuple[type[PricingError], str, int]] = [
    (EmptyCart, ErrorCodes.EMPTY_CART, 400),
    (CouponInvalid, ErrorCodes.COUPON_INVALID, 400),
    (ReferenceMissing, ErrorCodes.ITEM_UNAVAILABLE, 404),
    (InputError, ErrorCodes.INVALID_REQUEST, 400),
    (StockInsufficient, ErrorCodes.STOCK_INSUFFICIENT, 409),
    (PricingInconsistency, ErrorCodes.PRICING_INCONSISTENCY, 500),
]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _json(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, _request_id(request)).model_dump(mode="json"),
    )


def map_pricing_error(exc: PricingError) -> tuple[str, int]:
    """Error code and HTTP status for a pricing error."""
    for exc_type, code, status_code in PRICING_ERROR_MAP:
        if isinstance(exc, exc_type):
            return code, status_code
    return ErrorCodes.INTERNAL_ERROR, 500


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(PricingError)
    async def pricing_error_handler(request: Request, exc: PricingError):
        code, status_code = map_pricing_error(exc)
        if status_code >= 500:
            # Invariant breach is a bug; keep the detail in the log only
            logger.error(f"{type(exc).__name__}: {exc}")
            return _json(request, status_code, code, "Order pricing could not be verified")
        return _json(request, status_code, code, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json(request, 404, ErrorCodes.NOT_FOUND, message)
        return _json(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
