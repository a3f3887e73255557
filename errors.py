import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for failures that map directly onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class EmailDeliveryError(AppError):
    status_code = 500


def field_errors(raw_errors) -> List[dict]:
    """Flatten pydantic error dicts into [{field, message}] entries."""
    result = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        result.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return result


def _error_body(message: Optional[str] = None, errors: Optional[List[dict]] = None) -> dict:
    body = {"success": False}
    if message is not None:
        body["message"] = message
    if errors:
        body["errors"] = errors
    return body


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.errors))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=_error_body("Validation failed", field_errors(exc.errors())))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    limit_info = str(exc.limit.limit) if getattr(exc, "limit", None) else "the configured limit"
    return JSONResponse(
        status_code=429,
        content=_error_body(f"Too many requests ({limit_info}). Please wait a moment."),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("Server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
