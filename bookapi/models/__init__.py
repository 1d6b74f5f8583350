"""
SQLAlchemy Models Package

Import models here so they are registered on Base.metadata before
create_all() or Alembic autogenerate runs.
"""

from bookapi.models.book import Book

__all__ = [
    "Book",
]
