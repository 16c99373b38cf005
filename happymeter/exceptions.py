"""Application exceptions and their HTTP rendering."""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HappyMeterError(Exception):
    """Base error carrying the HTTP status and a client-safe message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal Server Error"

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        self.message = message
        self.headers = headers or {}
        super().__init__(message)


class ValidationError(HappyMeterError):
    """Submitted feedback text has the wrong shape or length."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"


class AuthError(HappyMeterError):
    """Missing or incorrect admin credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"


class PayloadTooLargeError(HappyMeterError):
    status_code = 413
    error = "Payload Too Large"


class RateLimitError(HappyMeterError):
    """Client exceeded its submission allowance."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "Too Many Requests"


class StoreUnavailable(HappyMeterError):
    """The relational store could not be reached or the query failed."""


class InternalError(HappyMeterError):
    """Opaque failure surfaced at a request boundary."""


def rate_limit_headers(request: Request) -> Dict[str, str]:
    """Rate-limit headers recorded for this request, if it was limited."""
    limit_status = getattr(request.state, "rate_limit", None)
    return limit_status.headers() if limit_status is not None else {}


async def happymeter_exception_handler(request: Request, exc: HappyMeterError) -> JSONResponse:
    """Render application errors as ``{error, message}``."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
        headers={**rate_limit_headers(request), **exc.headers} or None
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "message": "Internal server error"},
        headers=rate_limit_headers(request) or None
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HappyMeterError, happymeter_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
