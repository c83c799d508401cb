"""
Base repository with standardized CRUD operations, transaction management, and error handling.

Provides foundation for all domain repositories with type safety.
"""

import re
from contextlib import contextmanager
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import DuplicateKeyError, NotFoundError, RepositoryError
from hostel_ledger.core.logging import get_logger
from hostel_ledger.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)

_UNIQUE_FIELD_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),  # sqlite
    re.compile(r"Key \((\w+)\)=\("),  # postgres
    re.compile(r"for key '[\w.]*?(\w+)'"),  # mysql
)


def conflicting_field(error: IntegrityError) -> str:
    """Best guess at which column a unique-constraint violation refers to."""
    text = str(error.orig) if error.orig is not None else str(error)
    for pattern in _UNIQUE_FIELD_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return "unknown"


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides CRUD operations, transaction management, and error handling
    for all domain repositories.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Transaction Management ====================

    @contextmanager
    def transaction(self):
        """
        Transaction context manager with automatic rollback.

        Usage:
            with repository.transaction():
                repository.create(entity, commit=False)
        """
        try:
            yield self.db
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(conflicting_field(e)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transaction rollback: {str(e)}", exc_info=True)
            raise RepositoryError(f"Transaction failed: {str(e)}") from e

    def commit(self):
        """Commit current transaction."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(conflicting_field(e)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Commit failed: {str(e)}") from e

    def rollback(self):
        """Rollback current transaction."""
        self.db.rollback()

    # ==================== Create Operations ====================

    def create(self, entity: ModelType, commit: bool = True) -> ModelType:
        """
        Create new entity.

        Args:
            entity: Entity to create
            commit: Whether to commit immediately (flush otherwise)

        Returns:
            Created entity

        Raises:
            DuplicateKeyError: If a unique key is already taken
        """
        try:
            self.db.add(entity)

            if commit:
                self.db.commit()
                self.db.refresh(entity)
            else:
                self.db.flush()

            logger.info(f"Created {self.model.__name__} with id: {entity.id}")
            return entity

        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(conflicting_field(e)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Create failed: {str(e)}") from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: Optional[str]) -> Optional[ModelType]:
        """
        Find entity by ID.

        Returns:
            Entity or None
        """
        if not id:
            return None
        try:
            return self.db.get(self.model, str(id))
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}") from e

    def get_by_id(self, id: Optional[str]) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.find_by_id(id)
        if not entity:
            raise NotFoundError(self.model.__name__, str(id) if id else None)
        return entity

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = None,
        order_by: Optional[List[str]] = None,
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Filter criteria as key-value pairs (None values are ignored)
            skip: Number of records to skip
            limit: Maximum number of records
            order_by: List of fields to order by (prefix with - for desc)
        """
        try:
            query = self.db.query(self.model)

            for key, value in criteria.items():
                if value is None or not hasattr(self.model, key):
                    continue
                column = getattr(self.model, key)
                if isinstance(value, (list, tuple, set)):
                    query = query.filter(column.in_(list(value)))
                else:
                    query = query.filter(column == value)

            for field in order_by or []:
                if field.startswith('-'):
                    query = query.order_by(getattr(self.model, field[1:]).desc())
                else:
                    query = query.order_by(getattr(self.model, field))

            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by criteria failed: {str(e)}") from e

    def find_one_by_criteria(self, criteria: Dict[str, Any]) -> Optional[ModelType]:
        """Find single entity matching criteria."""
        results = self.find_by_criteria(criteria, limit=1)
        return results[0] if results else None

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Apply field updates to an entity.

        Unknown keys are ignored.
        """
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        return self.save(entity, commit=commit)

    def save(self, entity: ModelType, commit: bool = True) -> ModelType:
        """Persist pending changes on an already tracked entity."""
        try:
            self.db.add(entity)
            if commit:
                self.db.commit()
                self.db.refresh(entity)
            else:
                self.db.flush()
            return entity
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(conflicting_field(e)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Update failed: {str(e)}") from e

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType, commit: bool = True) -> None:
        """Hard delete an entity."""
        try:
            self.db.delete(entity)
            if commit:
                self.db.commit()
            else:
                self.db.flush()
            logger.info(f"Deleted {self.model.__name__} with id: {entity.id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Delete failed: {str(e)}") from e

    def refresh(self, entity: ModelType) -> ModelType:
        """Reload entity state from the database."""
        self.db.refresh(entity)
        return entity
