"""
Base service class providing common functionality for all services.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from schoolfees.config.settings import Settings, settings as default_settings
from schoolfees.core.exceptions import BaseAppException, handle_database_exception
from schoolfees.core.logging import get_logger
from schoolfees.repositories.base.base_repository import BaseRepository


TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger, settings, db session and primary repository
    - Transaction management with rollback on any failure
    - Database errors translated to application exceptions
    """

    def __init__(self, repository: TRepo, db_session: Session, config: Optional[Settings] = None):
        """
        Initialize base service.

        Args:
            repository: Repository for the service's primary entity
            db_session: SQLAlchemy database session
            config: Settings override (tests); defaults to the process settings
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self.settings: Settings = config or default_settings
        self._logger = get_logger(f"schoolfees.services.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Context manager for database transactions with automatic rollback.

        Yields:
            The database session

        Example:
            with self.transaction():
                self.invoices.create(invoice)
                # commit on success, rollback on exception
        """
        try:
            yield self.db
            self.db.commit()
        except BaseAppException:
            self._rollback()
            raise
        except SQLAlchemyError as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e.__class__.__name__}", exc_info=True)
            raise handle_database_exception(e) from e
        except Exception:
            self._rollback()
            self._logger.error("Transaction failed", exc_info=True)
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, logging rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Common Read Operations
    # -------------------------------------------------------------------------

    def get_by_id(self, entity_id: Any) -> TModel:
        """
        Retrieve the primary entity by ID.

        Raises:
            ResourceNotFoundError: (or the repository's subclass) when missing
        """
        return self.repository.get_by_id(entity_id)
