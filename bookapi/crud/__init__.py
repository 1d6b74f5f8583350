"""Persistence gateway: repositories over the ORM models."""

from bookapi.crud.books import BookRepository, book_repository

__all__ = ["BookRepository", "book_repository"]
