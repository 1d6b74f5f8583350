"""
Book Pydantic Schemas

Request payloads are validated and normalized here before any service
call:
- title, author, category and description are trimmed
- blank optional fields become None
- isbn is upper-cased and stripped to digits and X, then checked as an
  ISBN-10 or a 978/979 ISBN-13

JSON uses camelCase (stockQuantity, createdAt); Python code uses the
snake_case attribute names.
"""

import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ISBN_PATTERN = re.compile(r"^(?:\d{9}[\dX]|97[89]\d{10})$")


def normalize_isbn(value: str) -> str:
    """
    Upper-case an ISBN and drop everything that is not a digit or X.

    Example:
        >>> normalize_isbn(" 978-0-13-235088-4 ")
        '9780132350884'
        >>> normalize_isbn("0-306-40615-x")
        '030640615X'
    """
    return re.sub(r"[^0-9X]", "", value.upper())


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BookRequest(CamelModel):
    """
    Create/update payload. Server-managed fields are not accepted.

    Example request body:
    {
        "title": "Clean Code",
        "author": "Robert C. Martin",
        "isbn": "978-0132350884",
        "price": 42.99,
        "category": "Programming",
        "stockQuantity": 15
    }
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "Clean Code",
                "author": "Robert C. Martin",
                "isbn": "978-0132350884",
                "price": 42.99,
                "category": "Programming",
                "description": "A handbook of agile software craftsmanship",
                "stockQuantity": 15,
            }
        },
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Book title",
        examples=["Clean Code"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author name",
        examples=["Robert C. Martin"],
    )

    isbn: str = Field(
        ...,
        description="ISBN-10 or ISBN-13; hyphens and spaces are removed",
        examples=["978-0132350884", "0-306-40615-2"],
    )

    price: Decimal = Field(
        ...,
        gt=0,
        le=Decimal("9999.99"),
        max_digits=6,
        decimal_places=2,
        description="Unit price, up to 4 integer and 2 fraction digits",
        examples=["42.99"],
    )

    category: str | None = Field(
        default=None,
        max_length=50,
        description="Free-form category label",
        examples=["Programming"],
    )

    description: str | None = Field(
        default=None,
        max_length=1000,
        description="Short description",
    )

    stock_quantity: int = Field(
        ...,
        ge=0,
        le=10000,
        description="Units on hand",
        examples=[15],
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        """Normalize the ISBN and check its shape."""
        if not v:
            raise ValueError("ISBN is required")
        normalized = normalize_isbn(v)
        if not ISBN_PATTERN.match(normalized):
            raise ValueError(
                "Invalid ISBN format. Expected 10 characters (9 digits and a "
                "digit or 'X') or 13 digits starting with 978 or 979"
            )
        return normalized

    @field_validator("category", "description")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v or None


class BookResponse(CamelModel):
    """A persisted book as returned by the service layer."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    title: str
    author: str
    isbn: str
    price: Decimal
    category: str | None = None
    description: str | None = None
    stock_quantity: int
    version: int
    created_at: datetime
    updated_at: datetime


class PageMetadata(CamelModel):
    size: int
    number: int
    total_elements: int
    total_pages: int


class BookPage(CamelModel):
    """One page of books plus paging metadata."""

    items: list[BookResponse]
    page: PageMetadata


# =============================================================================
# Hypermedia representations
# =============================================================================
class Link(BaseModel):
    href: str
    method: str = "GET"


class BookLinks(BaseModel):
    self_: Link = Field(alias="self")
    update: Link
    delete: Link
    books: Link

    model_config = ConfigDict(populate_by_name=True)


class BookResource(BookResponse):
    """BookResponse with navigation links, as sent to clients."""

    links: BookLinks = Field(alias="_links")


class PageLinks(BaseModel):
    self_: Link = Field(alias="self")

    model_config = ConfigDict(populate_by_name=True)


class BookPageResource(CamelModel):
    items: list[BookResource]
    page: PageMetadata
    links: PageLinks = Field(alias="_links")
