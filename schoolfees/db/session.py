"""Database session management."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from schoolfees.config.settings import Settings, settings as default_settings
from schoolfees.core.logging import get_logger

logger = get_logger(__name__)


def _use_immediate_transactions(engine: Engine) -> None:
    """
    Make every SQLite transaction start with ``BEGIN IMMEDIATE``.

    SQLite ignores ``FOR UPDATE``; taking the write lock up front gives the
    locked reads of the allocator and waiver approval the same serialization.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Owns the engine and session factory for one application instance.

    Created on startup, stored on ``app.state.db`` and disposed on shutdown.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        config: Optional[Settings] = None,
        engine: Optional[Engine] = None,
    ):
        config = config or default_settings
        if engine is None:
            url = url or config.get_database_url()
            engine_kwargs: Dict[str, Any] = {
                "pool_pre_ping": True,
                "echo": config.DB_ECHO,
            }
            is_sqlite = url.startswith("sqlite")
            if is_sqlite:
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                engine_kwargs["pool_size"] = config.DB_POOL_SIZE
                engine_kwargs["max_overflow"] = config.DB_POOL_OVERFLOW
            engine = create_engine(url, **engine_kwargs)
            if is_sqlite:
                _use_immediate_transactions(engine)

        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=engine,
        )

    def session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Session for scripts and jobs outside the request cycle.

        Rolls back anything left uncommitted and always closes.
        """
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency function that yields a database session.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.db
    db = database.session()
    try:
        yield db
    finally:
        # uncommitted work (client gone, handler error) is discarded here
        db.rollback()
        db.close()
