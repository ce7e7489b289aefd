"""
Database engine and session management.
Uses SQLAlchemy 2.0 ORM with synchronous sessions.

The engine is built on first use so importing a service never opens a
connection pool. SQLite URLs get the listeners SAVEPOINT and ON DELETE
CASCADE depend on; every other URL gets the pooled production setup.
"""

import os
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.config.logging import get_logger
from shared.config.settings import DATABASE_URL, settings

logger = get_logger(__name__)


def _calculate_pool_size() -> int:
    """
    Calculate pool size based on CPU cores.
    Formula: (2 * CPU cores) + 1, capped at 20.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite must not issue BEGIN on its own, or nested transactions break
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str | None = None) -> Engine:
    """
    Build an engine for the given URL (defaults to DATABASE_URL).

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    url = url or DATABASE_URL

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": settings.db_echo}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=_calculate_pool_size(),
        max_overflow=settings.db_pool_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        connect_args={"connect_timeout": settings.db_connect_timeout},
        echo=settings.db_echo,
    )


_engine: Engine | None = None
_engine_lock = threading.Lock()

# Session factory, bound to the engine when a session is opened
SessionLocal = sessionmaker(autoflush=False, autocommit=False)


def get_engine() -> Engine:
    """Get or create the application engine."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = create_db_engine()
                logger.info("Database engine created", dialect=_engine.dialect.name)
    return _engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_db_context() as db:
            OrderService(db).create_order(request)
    """
    db = SessionLocal(bind=get_engine())
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
