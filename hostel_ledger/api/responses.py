"""
Rendering of service results for the HTTP layer.

Routes call a service, then hand the ``ServiceResult`` to :func:`respond`.
Failures become the shared error envelope with a status derived from the
error code; successes are validated into the route's response schema.
"""

from typing import Any, Dict, Optional, Type

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hostel_ledger.core.error_handlers import error_body
from hostel_ledger.services.base import ErrorCode, ServiceResult

STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.RETRY_LATER: status.HTTP_429_TOO_MANY_REQUESTS,
}


def error_response(result: ServiceResult) -> JSONResponse:
    error = result.error
    code = error.code if error else ErrorCode.INTERNAL_ERROR
    details = dict(error.details or {}) if error else {}
    if error and error.field:
        details.setdefault("field", error.field)

    headers: Optional[Dict[str, str]] = None
    if code == ErrorCode.RETRY_LATER:
        retry_after = float(details.get("retry_after_seconds") or 1)
        headers = {"Retry-After": str(max(1, int(round(retry_after))))}

    return JSONResponse(
        status_code=STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=error_body(code.value, error.message if error else "Unknown error", details),
        headers=headers,
    )


def respond(
    result: ServiceResult,
    schema: Optional[Type[BaseModel]] = None,
    many: bool = False,
) -> Any:
    """Return the validated payload of a successful result or an error response."""
    if not result.is_success:
        return error_response(result)
    if schema is None:
        return result.data
    if many:
        return [schema.model_validate(item) for item in result.data or []]
    return schema.model_validate(result.data)
