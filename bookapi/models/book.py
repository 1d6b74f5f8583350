"""
Book Model

The single entity of the inventory: one row per catalogue title with its
price, stock level and an optimistic-locking version counter.

Versioning
==========
`version` starts at 0 on insert and is bumped by exactly one on every
successful update. The repository performs updates as a compare-and-swap
on (id, version), so a writer holding a stale version matches no rows.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bookapi.database import Base


def utc_now() -> datetime:
    return datetime.now(UTC)


class Book(Base):
    """
    Book model representing an inventory item.

    Table: books

    Indexes:
    - isbn: unique, the natural key
    - author, category: lookup and filtering

    Example:
        book = Book(
            title="Clean Code",
            author="Robert C. Martin",
            isbn="9780132350884",
            price=Decimal("42.99"),
            category="Programming",
            stock_quantity=15,
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Author display name"
    )

    # Stored normalized: upper-case digits and X only
    isbn: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
        comment="International Standard Book Number"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Unit price"
    )

    category: Mapped[str | None] = mapped_column(
        String(50),
        index=True,
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    stock_quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Units on hand"
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Optimistic lock counter"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', isbn='{self.isbn}', version={self.version})"
