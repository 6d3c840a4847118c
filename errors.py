"""Error taxonomy and the FastAPI handlers that render it.

Every failure leaves the service with the same body::

    {"error": {"code": ..., "message": ..., "details": ..., "requestId": ...}}
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from logging_config import get_logger

logger = get_logger("errors")


class AppError(Exception):
    status = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Any = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status


class NotFoundError(AppError):
    status = 404
    code = "NOT_FOUND"


class ValidationError(AppError):
    status = 400
    code = "VALIDATION_ERROR"


class UnexpectedError(AppError):
    status = 500
    code = "INTERNAL_SERVER_ERROR"


class AuthError(AppError):
    status = 401
    code = "UNAUTHORIZED"


class RateLimitError(AppError):
    status = 429
    code = "RATE_LIMITED"


class DatabaseUnavailableError(AppError):
    status = 503
    code = "DATABASE_UNAVAILABLE"


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def error_body(request: Request, code: str, message: str, details: Any = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "requestId": _request_id(request),
        }
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("[API Error] %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status,
        content=error_body(request, exc.code, exc.message, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body(request, ValidationError.code, "Invalid input", details),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Internal detail stays in the log
    logger.exception("[API Error] %s %s failed", request.method, request.url.path)
    if isinstance(exc, PyMongoError):
        message = "Database operation failed"
    else:
        message = "An unexpected error occurred"
    return JSONResponse(
        status_code=500,
        content=error_body(request, UnexpectedError.code, message),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PyMongoError, unexpected_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
