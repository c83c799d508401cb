"""
Base service class providing common functionality for all services.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Generic, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import (
    BaseAppException,
    DuplicateKeyError,
    InvalidStateError,
    NotFoundError,
    TransientLockError,
    ValidationFailureError,
)
from hostel_ledger.core.logging import get_logger
from hostel_ledger.repositories.base import BaseRepository
from hostel_ledger.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    - Best-effort subordinate writes (logged, never rolled back into the primary)
    """

    def __init__(self, repository: TRepo, db_session: Session):
        """
        Initialize base service.

        Args:
            repository: Primary repository instance for data access
            db_session: SQLAlchemy database session
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__).add_context(service=self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Domain exceptions (not found, invalid state, validation, duplicate key,
        lock held) are expected outcomes and are logged at warning level with
        their own message preserved. Anything else is logged with a traceback.
        """
        self._rollback()

        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, BaseAppException):
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            return self._result_from_app_exception(exception)

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=self._map_exception_to_error_code(exception),
                message=f"Failed to {operation}: {exception}",
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                    "context": additional_context,
                },
                severity=ErrorSeverity.CRITICAL,
            )
        )

    def _result_from_app_exception(self, exception: BaseAppException) -> ServiceResult:
        if isinstance(exception, NotFoundError):
            return ServiceResult.failure(
                ServiceError(
                    code=ErrorCode.NOT_FOUND,
                    message=exception.message,
                    details=exception.details,
                    severity=ErrorSeverity.WARNING,
                )
            )
        if isinstance(exception, TransientLockError):
            return ServiceResult.retry_later(
                exception.message,
                retry_after=exception.retry_after,
                details=exception.details,
            )
        if isinstance(exception, ValidationFailureError):
            return ServiceResult.validation_failure(
                exception.message,
                field=exception.field,
                details=exception.details,
            )
        if isinstance(exception, DuplicateKeyError):
            return ServiceResult.conflict(
                exception.message,
                field=exception.field,
                details=exception.details,
            )
        if isinstance(exception, InvalidStateError):
            return ServiceResult.invalid_state(exception.message, details=exception.details)

        return ServiceResult.failure(
            ServiceError(
                code=ErrorCode.INTERNAL_ERROR,
                message=exception.message,
                details=exception.details,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """Map unexpected exception types to error codes."""
        exception_mapping = {
            ValueError: ErrorCode.VALIDATION_ERROR,
            KeyError: ErrorCode.NOT_FOUND,
            SQLAlchemyError: ErrorCode.INTERNAL_ERROR,
        }

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for one logical document write.

        Example:
            with self.transaction():
                room.occupied = 1
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction aborted: {e}")
            raise

    @contextmanager
    def best_effort(
        self,
        step: str,
        warnings: List[str],
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Run a subordinate write after the primary write has committed.

        A failure is rolled back, logged as a partial commit with full
        context and appended to `warnings`; it is not re-raised, and the
        primary write stays committed.
        """
        try:
            yield self.db
            self._commit()
        except Exception as e:
            self._rollback()
            message = f"{step} failed after primary write: {e}"
            warnings.append(message)
            extra = {"step": step, "partial_commit": True, "exception_type": type(e).__name__}
            if context:
                extra.update(context)
            self._logger.warning(message, exc_info=True, extra=extra)

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log service operation with standardized format."""
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(operation, extra=context)
