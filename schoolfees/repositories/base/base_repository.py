"""
Base repository with standardized data access operations.

Repositories never commit: the owning service decides the transaction
boundary, repositories only add, flush and query.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolfees.core.exceptions import ResourceNotFoundError
from schoolfees.core.logging import get_logger
from schoolfees.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing common operations for one model.
    """

    not_found_error: Type[ResourceNotFoundError] = ResourceNotFoundError

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """Add entity to the session and flush so generated keys are available."""
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, entity_id: Any) -> Optional[ModelType]:
        return self.db.get(self.model, entity_id)

    def get_by_id(self, entity_id: Any) -> ModelType:
        """
        Get entity by id.

        Raises:
            ResourceNotFoundError: (or the repository's subclass) when missing
        """
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise self._not_found(entity_id)
        return entity

    def get_for_update(self, entity_id: Any) -> ModelType:
        """Fetch entity holding a row lock until the transaction ends."""
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        entity = self.db.execute(stmt).scalar_one_or_none()
        if entity is None:
            raise self._not_found(entity_id)
        return entity

    def _not_found(self, entity_id: Any) -> ResourceNotFoundError:
        if self.not_found_error is ResourceNotFoundError:
            return ResourceNotFoundError(self.model.__name__, str(entity_id))
        return self.not_found_error(str(entity_id))
