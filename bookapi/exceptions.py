"""
Domain exceptions for the Book Inventory API.

Raised by the repository and service layers and translated into problem
responses by bookapi.errors. Each class carries the HTTP status and the
problem title it maps to.
"""

from typing import Optional


class BookApiError(Exception):
    """Base exception for all domain failures."""

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class BookNotFoundError(BookApiError):
    """Raised when no book exists for the requested id."""

    status_code = 404
    title = "Book Not Found"

    def __init__(self, book_id: int):
        super().__init__(f"Book not found with id: {book_id}")


class DuplicateIsbnError(BookApiError):
    """Raised when an ISBN already belongs to another book."""

    status_code = 409
    title = "Duplicate ISBN"

    def __init__(self, isbn: str, message: Optional[str] = None):
        super().__init__(message or f"Book with ISBN {isbn} already exists")


class StaleBookVersionError(BookApiError):
    """Raised when an update was based on an outdated version."""

    status_code = 409
    title = "Optimistic Lock Conflict"

    def __init__(self, book_id: int, expected_version: int):
        super().__init__(
            f"Book {book_id} was modified concurrently "
            f"(expected version {expected_version}). Reload and retry."
        )


class InvalidRequestError(BookApiError):
    """Raised when input fails validation outside of request parsing."""

    status_code = 400
    title = "Validation Error"

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message)


class AuthenticationError(BookApiError):
    """Raised when a protected operation has no valid bearer token."""

    status_code = 401
    title = "Unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AccessDeniedError(BookApiError):
    """Raised when the caller lacks every role the operation accepts."""

    status_code = 403
    title = "Access Denied"

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class TaskRejectedError(BookApiError):
    """Raised when the background executor has no free capacity."""

    status_code = 503
    title = "Service Unavailable"

    def __init__(self, message: str = "Async task queue is full"):
        super().__init__(message)
