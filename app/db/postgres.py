"""
PostgreSQL Connection Utility

The engine is created lazily on first use so that importing the app (or the
test suite) never opens a connection. Services take a session factory, so
tests can hand them one bound to an in-memory SQLite engine instead.
"""
import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> Engine:
    """Create the engine with a connection pool (once per process)."""
    settings = get_settings()
    url = settings.postgres_url
    if url.startswith("sqlite"):
        return create_engine(url, echo=settings.debug)
    # pool_size=5: maintain 5 connections ready
    # max_overflow=10: allow 10 extra connections under load
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=settings.debug  # Log SQL queries in debug mode
    )


@lru_cache()
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


@contextmanager
def get_db_session(session_factory: Optional[sessionmaker] = None):
    """
    Context manager for database sessions.
    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM startups"))
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def execute_raw_sql(sql: str, params: dict = None, session_factory: Optional[sessionmaker] = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    """
    with get_db_session(session_factory) as db:
        result = db.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings().all()]


def check_connection(session_factory: Optional[sessionmaker] = None) -> bool:
    """
    Check if the database is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session(session_factory) as db:
            row = db.execute(text("SELECT 1 AS ok")).fetchone()
            return row[0] == 1
    except SQLAlchemyError as e:
        logger.warning("Database connection failed: %s", e)
        return False
