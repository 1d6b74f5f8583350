"""Problem body returned for every error response."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProblemDetail(BaseModel):
    """
    application/problem+json body.

    Example:
    {
        "type": "about:blank",
        "title": "Book Not Found",
        "status": 404,
        "detail": "Book not found with id: 42",
        "instance": "/api/v1/books/42",
        "timestamp": "2024-05-01T12:00:00Z"
    }
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: str | None = None
    timestamp: datetime
    errors: dict[str, str] | None = Field(
        default=None,
        description="Field to message map, present on validation failures",
    )
