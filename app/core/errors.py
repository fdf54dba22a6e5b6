"""Error taxonomy and the JSON error envelope shared by every route."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Fixed set of machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_STATUS = "INVALID_STATUS"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_TOKEN_TYPE = "INVALID_TOKEN_TYPE"
    TOKEN_MISMATCH = "TOKEN_MISMATCH"
    TOKEN_ALREADY_USED = "TOKEN_ALREADY_USED"
    PAYMENT_NOT_CONFIRMED = "PAYMENT_NOT_CONFIRMED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    ONBOARDING_NOT_COMPLETED = "ONBOARDING_NOT_COMPLETED"
    PROFILE_ALREADY_UNLOCKED = "PROFILE_ALREADY_UNLOCKED"
    PROFILE_LOCKED = "PROFILE_LOCKED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(Exception):
    """Base class for errors that map onto the error envelope."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error: str,
        code: Optional[ErrorCode] = None,
        details: Optional[List[Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(error)
        self.error = error
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or []


class ValidationFailed(ApiError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR


class Unauthorized(ApiError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED


class Forbidden(ApiError):
    status_code = 403
    code = ErrorCode.FORBIDDEN


class NotFound(ApiError):
    status_code = 404
    code = ErrorCode.NOT_FOUND


class BusinessRuleViolation(ApiError):
    """A request that is well formed but breaks a workflow precondition."""

    status_code = 400
    code = ErrorCode.CONFLICT


class InvalidTransition(BusinessRuleViolation):
    status_code = 409
    code = ErrorCode.INVALID_TRANSITION


_HTTP_STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}


def error_response(
    request: Request,
    status_code: int,
    error: str,
    code: ErrorCode,
    details: Optional[List[Any]] = None,
) -> JSONResponse:
    """Build the `{success: false, ...}` envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "code": code.value,
            "details": details or [],
            "timestamp": datetime.utcnow().isoformat(),
            "path": request.url.path,
            "status": status_code,
        },
    )


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code.value} on {request.method} {request.url.path}: {exc.error}")
    return error_response(request, exc.status_code, exc.error, exc.code, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException):
    code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_SERVER_ERROR)
    return error_response(request, exc.status_code, str(exc.detail), code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation Error: {exc.errors()}")
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response(
        request, 400, "Validation failed", ErrorCode.VALIDATION_ERROR, details
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return error_response(
            request, 409, "Resource already exists", ErrorCode.ALREADY_EXISTS
        )
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return error_response(
        request, 500, "Database operation failed", ErrorCode.DATABASE_ERROR
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        request, 500, "Internal server error", ErrorCode.INTERNAL_SERVER_ERROR
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
