"""
Exception handlers rendering every failure in one JSON envelope:

    {"error": {"code", "message", "details", "timestamp"}}
"""

import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from hostel_ledger.core.exceptions import BaseAppException, TransientLockError
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)


def error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "timestamp": int(time.time()),
        }
    }


async def handle_app_exception(request: Request, exc: BaseAppException) -> JSONResponse:
    """Handle custom application exceptions"""
    logger.warning(
        f"Application exception: {exc.error_code.value} - {exc.message}",
        extra={
            "error_code": exc.error_code.value,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )
    headers = None
    if isinstance(exc, TransientLockError):
        headers = {"Retry-After": str(max(1, int(round(exc.retry_after))))}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_code.value, exc.message, exc.details),
        headers=headers,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body/query validation errors"""
    field_errors = {}
    for error in exc.errors():
        field_path = '.'.join(str(x) for x in error['loc'])
        field_errors[field_path] = {
            "message": error['msg'],
            "type": error['type'],
        }

    logger.warning(
        f"Validation error: {len(field_errors)} field(s) failed validation",
        extra={"validation_errors": field_errors, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            "VALIDATION_ERROR",
            "Request validation failed",
            {"field_errors": field_errors, "error_count": len(field_errors)},
        ),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle store errors, passing their message through"""
    logger.error(
        f"Database error: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("DATABASE_ERROR", str(exc.__class__.__name__), {"error": str(exc)}),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for errors no route turned into a result"""
    logger.error(
        f"Unhandled error: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error", {"error_type": type(exc).__name__}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
