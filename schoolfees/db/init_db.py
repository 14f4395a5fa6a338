"""Database initialization utilities."""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from schoolfees.models import Base

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """
    Create any missing tables.

    Note: This is suitable for development/testing only.
    Production schemas are managed by migrations.
    """
    existing_tables = set(inspect(engine).get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing_tables]

    if not missing:
        logger.info(f"Database already initialized with {len(existing_tables)} tables")
        return

    Base.metadata.create_all(bind=engine, tables=missing)
    logger.info("Database tables created", extra={"tables": [t.name for t in missing]})


def drop_db(engine: Engine) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Only for development/testing purposes.
    """
    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")

