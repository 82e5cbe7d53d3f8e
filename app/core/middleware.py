"""
App middleware — CORS and domain exception handlers.

Kept out of main.py so the app module only wires routers.
"""
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AuthenticationError,
    CommandCenterException,
    ExternalAPIError,
    InvalidAsinError,
    PriceUnavailableError,
    ProductNotFoundError,
    RateLimitError,
    ValidationError,
    WebhookVerificationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
_STATUS_BY_EXCEPTION: list[tuple[type, int]] = [
    (ValidationError, 400),
    (InvalidAsinError, 400),
    (WebhookVerificationError, 401),
    (ProductNotFoundError, 404),
    (PriceUnavailableError, 404),
    (RateLimitError, 429),
    (ExternalAPIError, 502),
    # Upstream rejected our API key; not the caller's credentials
    (AuthenticationError, 502),
]


def _allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def apply_cors(app: FastAPI) -> None:
    """Apply CORS middleware; origins come from CORS_ALLOWED_ORIGINS (comma separated)."""
    origins = _allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials never pair with the "*" wildcard
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def status_for_exception(exc: CommandCenterException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def command_center_exception_handler(request: Request, exc: CommandCenterException) -> JSONResponse:
    status_code = status_for_exception(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
        headers=headers,
    )


def apply_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CommandCenterException, command_center_exception_handler)
