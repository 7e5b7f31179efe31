"""
Database Session Management

Handles engine creation, session lifecycle, and database initialization.
Works with PostgreSQL in production and SQLite for local development
and tests.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .models import Base

logger = logging.getLogger(__name__)

# =============================================================================
# DATABASE URL CONFIGURATION
# =============================================================================

DEFAULT_SQLITE_PATH = "webaudit_dev.db"


def get_database_url(url: Optional[str] = None) -> str:
    """
    Resolve the database URL.

    Priority:
    1. Explicit url / DATABASE_URL setting
    2. SQLite fallback for local development

    Heroku/Railway style postgres:// URLs are rewritten to postgresql://.
    """
    if url:
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    logger.warning(f"No DATABASE_URL found, using SQLite: {DEFAULT_SQLITE_PATH}")
    return f"sqlite:///{DEFAULT_SQLITE_PATH}"


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create database engine with appropriate settings.

    PostgreSQL: Connection pooling
    SQLite: Thread-shared connections; in-memory databases use one
            static connection so every session sees the same data
    """
    if url.startswith("postgresql"):
        engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,                # Base connections
            max_overflow=10,            # Additional connections under load
            pool_timeout=30,            # Wait for connection
            pool_recycle=1800,          # Recycle connections after 30 min
            pool_pre_ping=True,         # Verify connections before use
            echo=echo,
        )
        logger.info("Created PostgreSQL engine with connection pooling")
        return engine

    kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("Created SQLite engine")
    return engine


class Database:
    """
    Engine plus session factory.

    Usage:
        db = Database("sqlite://")
        db.init()
        with db.session() as session:
            session.add(record)
    """

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        self.url = get_database_url(url)
        self.engine = create_db_engine(self.url, echo=echo)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,  # Don't expire objects after commit
        )

    def init(self):
        """Create all tables (idempotent)."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables verified")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Commits on success, rolls back on error, always closes.
        """
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self):
        self.engine.dispose()
