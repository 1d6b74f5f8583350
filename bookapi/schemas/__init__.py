"""
Pydantic Schemas Package

Request/response models kept separate from the ORM models so the wire
format (camelCase, links, problem bodies) can evolve independently of the
table.
"""

from bookapi.schemas.book import (
    BookLinks,
    BookPage,
    BookPageResource,
    BookRequest,
    BookResource,
    BookResponse,
    Link,
    PageLinks,
    PageMetadata,
    normalize_isbn,
)
from bookapi.schemas.pagination import PageRequest
from bookapi.schemas.problem import ProblemDetail

__all__ = [
    "BookLinks",
    "BookPage",
    "BookPageResource",
    "BookRequest",
    "BookResource",
    "BookResponse",
    "Link",
    "PageLinks",
    "PageMetadata",
    "PageRequest",
    "ProblemDetail",
    "normalize_isbn",
]
