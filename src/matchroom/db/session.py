"""
Database session management for Matchroom.

Provides the SQLAlchemy engine and session factory, configured from
config.py.

Usage:
    from matchroom.db import get_session, SqlGateway

    with get_session() as session:
        gateway = SqlGateway(session)
        matches = gateway.matches_for_activity("pingpong")
        # Commits automatically on exit, rolls back on exception
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from matchroom.config import settings


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create the SQLAlchemy engine.

    - Pool sizing from settings (not applicable to SQLite)
    - Echo SQL only when LOG_LEVEL=DEBUG
    - Pre-ping to verify connections before use
    """
    url = database_url or settings.database_url
    kwargs = {
        "pool_pre_ping": True,
        "echo": settings.log_level == "DEBUG",
    }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return create_engine(url, **kwargs)


_engine: Optional[Engine] = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory; bound lazily so importing this module never connects
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal(bind=_get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
