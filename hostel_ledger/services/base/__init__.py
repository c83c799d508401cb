"""
Base service infrastructure: result objects and the common service class.
"""

from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "BaseService",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
