"""
Error types and the global error translator.

Every failure leaves the API as ``{"message": ..., "stack": ...}``. The stack
is only filled in outside production.
"""

import logging
import traceback
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from quizzy import config

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors that map directly onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(APIError):
    status_code = 404


class MalformedIdentifierError(NotFoundError):
    """An id that cannot be parsed is reported as a missing resource."""

    def __init__(self, value: str = ""):
        super().__init__("Resource not found")
        self.value = value


class ConflictError(APIError):
    status_code = 400


class EntityValidationError(APIError):
    """One or more fields of an entity failed validation."""

    status_code = 400

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(", ".join(errors.values()))


def error_envelope(exc: BaseException, message: str) -> dict:
    stack = None
    if not config.IS_PRODUCTION:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return {"message": message, "stack": stack}


def _json_error(exc: BaseException, message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(exc, message),
        headers=headers,
    )


def _request_validation_messages(errors: Iterable[dict]) -> str:
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        text = error.get("msg", "Invalid value")
        messages.append(f"{location}: {text}" if location else text)
    return ", ".join(messages)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _json_error(exc, exc.message, exc.status_code)


def is_duplicate_key(exc: IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc.orig)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    if not is_duplicate_key(exc):
        return await unhandled_error_handler(request, exc)
    logger.warning(f"Unique constraint violated on {request.url.path}: {exc.orig}")
    return _json_error(exc, "Duplicate field value entered", 400)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _json_error(exc, _request_validation_messages(exc.errors()), 400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Not Found - {request.url.path}"
    return _json_error(exc, str(message), exc.status_code, headers=getattr(exc, "headers", None))


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit hit on {request.url.path}: {exc.detail}")
    return _json_error(exc, f"Rate limit exceeded: {exc.detail}", 429)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _json_error(exc, str(exc), 500)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turns uncaught exceptions into the 500 envelope inside the middleware stack.

    The app-level ``Exception`` handler runs outside every user middleware,
    so its responses would miss CORS headers.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return await unhandled_error_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Install the global error translator on an application."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    # Added first so it sits innermost, under CORS and request logging
    app.add_middleware(UnhandledErrorMiddleware)
