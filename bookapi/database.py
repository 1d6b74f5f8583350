"""
Database Configuration Module

SQLAlchemy 2.0 (synchronous ORM) setup for the Book Inventory API.

Session Management Pattern
==========================
One session per request, handed out by the get_db() dependency:
1. Request arrives → create a session
2. Repository methods commit or roll back explicitly
3. Session is closed when the request ends

PostgreSQL (psycopg2) is the production target. SQLite is supported for
local development and tests; it gets no pool sizing arguments. SQLite's
built-in lower() only folds ASCII, so every SQLite connection gets a
Unicode-aware replacement that matches PostgreSQL's case-insensitive search.
"""

import sqlite3
from collections.abc import Generator
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookapi.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# pool_pre_ping tests connections before use so stale ones are replaced.
# echo logs every SQL statement when DEBUG is on.

if settings.is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        echo=settings.debug,
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


# =============================================================================
# SQLite Functions
# =============================================================================
def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


@event.listens_for(Engine, "connect")
def register_sqlite_functions(dbapi_connection, connection_record) -> None:
    """Replace SQLite's ASCII-only lower() on every new connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    Alembic reads Base.metadata to discover tables for autogenerate.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before the yield opens the session, the route runs at the yield,
    and the finally block closes it even when the route raised.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Development and test helper. Use Alembic migrations in production.
    """
    Base.metadata.create_all(bind=engine)

