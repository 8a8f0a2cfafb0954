"""Error taxonomy for the HTTP API and its JSON rendering."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse


logger = logging.getLogger(__name__)


class PortfolioError(Exception):
    """Base class for errors that map onto an HTTP status and message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(PortfolioError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceUnavailable(PortfolioError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ValidationError(PortfolioError):
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLarge(PortfolioError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class NotFound(PortfolioError):
    status_code = status.HTTP_404_NOT_FOUND


class UpstreamFailure(PortfolioError):
    """The datastore or the media host failed to complete a call."""


class RateLimitExceeded(Exception):
    """Raised by a limiter bucket once a client used up its window."""

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation errors as a single readable message."""

    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> PlainTextResponse:
    return PlainTextResponse(
        exc.message,
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(exc.retry_after)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the app."""

    app.add_exception_handler(PortfolioError, portfolio_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
