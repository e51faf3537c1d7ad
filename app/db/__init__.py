"""
Database module - relational store connection and table definitions.
"""
from app.db.postgres import get_db_session, get_engine, get_session_factory, check_connection
from app.db.tables import init_tables

__all__ = [
    "get_db_session",
    "get_engine",
    "get_session_factory",
    "check_connection",
    "init_tables"
]
