"""
Custom exceptions for the hostel ledger service.

Each exception carries an error code and the HTTP status the API layer
renders it with.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATE = "INVALID_STATE"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    RETRY_LATER = "RETRY_LATER"
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Domain Exceptions
# ========================================

class NotFoundError(BaseAppException):
    """Raised when a referenced room, occupant, fee or ledger entry is absent"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class InvalidStateError(BaseAppException):
    """Raised when an operation is not allowed in the current state (room full, already checked out)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_STATE, details, 409)


class ValidationFailureError(BaseAppException):
    """Raised when input is missing or malformed, before any mutation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if field_errors:
            details["field_errors"] = field_errors
        self.field = field
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 422)


class DuplicateKeyError(BaseAppException):
    """Raised when a unique key (external id, email, room number) is already taken"""

    def __init__(self, field: str, value: Any = None, message: Optional[str] = None):
        if not message:
            message = f"{field} already exists"
            if value is not None:
                message = f"{field} '{value}' already exists"
        self.field = field
        super().__init__(message, ErrorCode.DUPLICATE_ENTRY, {"field": field, "value": value}, 409)


class TransientLockError(BaseAppException):
    """Raised when an advisory lock is held; callers should retry shortly"""

    def __init__(self, key: str, retry_after: float):
        self.retry_after = retry_after
        super().__init__(
            "Another request for this occupant is in progress, retry shortly",
            ErrorCode.RETRY_LATER,
            {"lock_key": key, "retry_after_seconds": retry_after},
            429,
        )


class RepositoryError(BaseAppException):
    """Raised when the store rejects a read or write"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "NotFoundError",
    "InvalidStateError",
    "ValidationFailureError",
    "DuplicateKeyError",
    "TransientLockError",
    "RepositoryError",
]
