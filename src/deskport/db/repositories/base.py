"""
Base repository with common operations for target database models.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deskport.models.target import TargetBase

ModelType = TypeVar("ModelType", bound=TargetBase)


class BaseRepository(Generic[ModelType]):
    """Generic repository over one target table."""

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def create(self, **kwargs: Any) -> ModelType:
        """
        Insert a new row and commit it immediately.

        Every migrated row is durable on its own: a later failure (for
        example of a child row) never rolls back rows written before it.

        Args:
            **kwargs: Model field values

        Returns:
            Created instance with its generated id populated

        Raises:
            SQLAlchemyError: If the insert fails (the session is rolled back)
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return instance

    def get(self, id: int) -> Optional[ModelType]:
        """
        Get a row by primary key.

        Args:
            id: Row id

        Returns:
            Instance or None
        """
        return self.session.get(self.model, id)

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[ModelType]:
        """
        Get all rows ordered by id.

        Args:
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            List of instances
        """
        stmt = select(self.model).order_by(self.model.id).offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def count(self, **filters: Any) -> int:
        """
        Count rows, optionally filtered by column equality.

        Args:
            **filters: Column name / value pairs

        Returns:
            Number of matching rows
        """
        stmt = select(func.count()).select_from(self.model).filter_by(**filters)
        return self.session.scalar(stmt) or 0
