"""
Book repository: the only code that reads or writes the books table.

Lookups return None or empty results instead of raising. Writes commit
their own transaction and translate constraint failures into domain
exceptions:
- unique isbn violation -> DuplicateIsbnError
- zero rows matched by the versioned update -> StaleBookVersionError
"""

import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookapi.exceptions import BookNotFoundError, DuplicateIsbnError, StaleBookVersionError
from bookapi.models.book import Book, utc_now
from bookapi.schemas.pagination import PageRequest

logger = logging.getLogger(__name__)


class BookRepository:
    """Repository for all database operations on Book."""

    def __init__(self):
        self.model = Book
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    def get(self, db: Session, *, book_id: int) -> Optional[Book]:
        return db.get(self.model, book_id)

    def exists(self, db: Session, *, book_id: int) -> bool:
        statement = select(self.model.id).where(self.model.id == book_id)
        return db.execute(statement).first() is not None

    def exists_by_isbn(self, db: Session, *, isbn: str) -> bool:
        statement = select(self.model.id).where(self.model.isbn == isbn)
        return db.execute(statement).first() is not None

    def get_by_isbn(self, db: Session, *, isbn: str) -> Optional[Book]:
        statement = select(self.model).where(self.model.isbn == isbn)
        return db.execute(statement).scalar_one_or_none()

    def count(self, db: Session) -> int:
        return db.execute(select(func.count()).select_from(self.model)).scalar_one()

    # -------------------------------------------------------------------------
    # Paged queries
    # -------------------------------------------------------------------------
    def get_page(self, db: Session, *, page_request: PageRequest) -> Tuple[List[Book], int]:
        """Retrieve one page of all books."""
        return self._paginate(db, select(self.model), page_request)

    def get_page_by_category(
        self, db: Session, *, category: str, page_request: PageRequest
    ) -> Tuple[List[Book], int]:
        """Retrieve books whose category equals `category` exactly."""
        query = select(self.model).where(self.model.category == category)
        return self._paginate(db, query, page_request)

    def search(self, db: Session, *, term: str, page_request: PageRequest) -> Tuple[List[Book], int]:
        """Case-insensitive substring match on title or author."""
        needle = term.lower()
        query = select(self.model).where(
            or_(
                func.lower(self.model.title).contains(needle, autoescape=True),
                func.lower(self.model.author).contains(needle, autoescape=True),
            )
        )
        return self._paginate(db, query, page_request)

    def get_low_stock(self, db: Session, *, threshold: int) -> List[Book]:
        """Books with stock strictly below `threshold`, lowest stock first."""
        statement = (
            select(self.model)
            .where(self.model.stock_quantity < threshold)
            .order_by(self.model.stock_quantity.asc(), self.model.id.asc())
        )
        return list(db.execute(statement).scalars().all())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def create(self, db: Session, *, fields: dict[str, Any]) -> Book:
        """Insert a new book with version 0."""
        book = self.model(**fields, version=0)
        db.add(book)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            self._logger.warning(f"Unique constraint rejected insert for ISBN {fields.get('isbn')}")
            raise DuplicateIsbnError(fields.get("isbn", ""))
        db.refresh(book)
        return book

    def update(
        self,
        db: Session,
        *,
        book_id: int,
        expected_version: int,
        fields: dict[str, Any],
    ) -> Book:
        """
        Replace the mutable fields of a book if its version is unchanged.

        Runs a single UPDATE ... WHERE id = :id AND version = :expected that
        also bumps the version and updated_at. No matched row means another
        writer got there first.

        Raises:
            BookNotFoundError: The row was deleted meanwhile
            StaleBookVersionError: The row has a newer version
            DuplicateIsbnError: The new ISBN collides with another row
        """
        statement = (
            update(self.model)
            .where(self.model.id == book_id, self.model.version == expected_version)
            .values(**fields, version=self.model.version + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.execute(statement)
        except IntegrityError:
            db.rollback()
            self._logger.warning(f"Unique constraint rejected update of book {book_id}")
            raise DuplicateIsbnError(fields.get("isbn", ""), f"ISBN {fields.get('isbn')} is already in use")

        if result.rowcount == 0:
            db.rollback()
            if not self.exists(db, book_id=book_id):
                raise BookNotFoundError(book_id)
            self._logger.warning(f"Stale update of book {book_id} at version {expected_version}")
            raise StaleBookVersionError(book_id, expected_version)

        db.commit()
        book = db.get(self.model, book_id, populate_existing=True)
        if book is None:
            raise BookNotFoundError(book_id)
        return book

    def delete(self, db: Session, *, book_id: int) -> bool:
        """Hard delete. Returns False when no row had that id."""
        result = db.execute(delete(self.model).where(self.model.id == book_id))
        db.commit()
        return result.rowcount > 0

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _paginate(self, db: Session, query: Select, page_request: PageRequest) -> Tuple[List[Book], int]:
        count_query = select(func.count()).select_from(query.subquery())
        total = db.execute(count_query).scalar_one()

        query = self._apply_ordering(query, page_request)
        paginated_query = query.offset(page_request.offset).limit(page_request.size)
        books = list(db.execute(paginated_query).scalars().all())
        return books, total

    def _apply_ordering(self, query: Select, page_request: PageRequest) -> Select:
        column = getattr(self.model, page_request.sort_field)
        primary = column.desc() if page_request.descending else column.asc()
        # id as tie-breaker keeps page boundaries stable
        return query.order_by(primary, self.model.id.asc())


book_repository = BookRepository()
