"""
Book Service

Business rules for the Book resource, between the routers and the
repository:
- role checks on writes and the low-stock report (@requires_roles)
- duplicate ISBN checks on create and update
- read-through caching and scope eviction (@cacheable / @cache_evict)
- the low-stock report runs on the bounded background executor

Every method takes the request's Session first and returns Pydantic
response models, never ORM objects.
"""

import inspect
import logging
from concurrent.futures import Future
from functools import wraps
from typing import Any, Callable, List, Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from bookapi.crud.books import BookRepository, book_repository
from bookapi.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    BookNotFoundError,
    DuplicateIsbnError,
    InvalidRequestError,
)
from bookapi.models.book import Book
from bookapi.schemas.book import BookPage, BookRequest, BookResponse, PageMetadata
from bookapi.schemas.pagination import PageRequest
from bookapi.services.cache import (
    BOOK_SCOPE,
    BOOKS_SCOPE,
    CATEGORY_SCOPE,
    cache_evict,
    cacheable,
)
from bookapi.services.security import Principal, Role
from bookapi.services.tasks import get_executor

logger = logging.getLogger(__name__)

READ_ROLES = (Role.USER, Role.LIBRARIAN, Role.ADMIN)
WRITE_ROLES = (Role.LIBRARIAN, Role.ADMIN)


def requires_roles(*roles: Role) -> Callable:
    """
    Allow the call only if its `principal` argument holds one of `roles`.

    Raises:
        AuthenticationError: principal is None
        AccessDeniedError: principal has none of the roles
    """
    required = frozenset(roles)

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            principal: Optional[Principal] = signature.bind(*args, **kwargs).arguments.get("principal")
            if principal is None:
                raise AuthenticationError()
            if not principal.has_any_role(required):
                logger.warning(
                    f"Access denied to {func.__name__} for {principal.subject}: "
                    f"has {sorted(r.value for r in principal.roles)}, "
                    f"needs one of {sorted(r.value for r in required)}"
                )
                raise AccessDeniedError()
            return func(*args, **kwargs)

        return wrapper

    return decorator


def _to_page(books: List[Book], total: int, page_request: PageRequest) -> BookPage:
    return BookPage(
        items=[BookResponse.model_validate(book) for book in books],
        page=PageMetadata(
            size=page_request.size,
            number=page_request.page,
            total_elements=total,
            total_pages=page_request.total_pages(total),
        ),
    )


class BookService:
    """Service layer for Book operations."""

    def __init__(self, repository: BookRepository = book_repository):
        self.repository = repository
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    @cacheable(BOOKS_SCOPE, key="{page_request.cache_key}", model=BookPage)
    def get_all(self, db: Session, page_request: PageRequest) -> BookPage:
        books, total = self.repository.get_page(db, page_request=page_request)
        return _to_page(books, total, page_request)

    @cacheable(BOOK_SCOPE, key="{book_id}", model=BookResponse)
    def find_by_id(self, db: Session, book_id: int) -> Optional[BookResponse]:
        """Cached lookup; a miss returns None and is not cached."""
        book = self.repository.get(db, book_id=book_id)
        return BookResponse.model_validate(book) if book is not None else None

    def get_by_id(self, db: Session, book_id: int) -> BookResponse:
        book = self.find_by_id(db, book_id)
        if book is None:
            self._logger.warning(f"Book {book_id} not found")
            raise BookNotFoundError(book_id)
        return book

    def search(self, db: Session, term: str, page_request: PageRequest) -> BookPage:
        term = term.strip()
        if not term:
            raise InvalidRequestError({"q": "Search term must not be blank"})
        books, total = self.repository.search(db, term=term, page_request=page_request)
        return _to_page(books, total, page_request)

    @cacheable(CATEGORY_SCOPE, key="{category}-{page_request.cache_key}", model=BookPage)
    def get_by_category(self, db: Session, category: str, page_request: PageRequest) -> BookPage:
        books, total = self.repository.get_page_by_category(
            db, category=category, page_request=page_request
        )
        return _to_page(books, total, page_request)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    @requires_roles(*WRITE_ROLES)
    @cache_evict(BOOKS_SCOPE, BOOK_SCOPE)
    def create(self, db: Session, request: BookRequest, principal: Principal) -> BookResponse:
        self._logger.info(f"Creating book with ISBN {request.isbn} for {principal.subject}")

        if self.repository.exists_by_isbn(db, isbn=request.isbn):
            self._logger.warning(f"Duplicate ISBN on create: {request.isbn}")
            raise DuplicateIsbnError(request.isbn)

        book = self.repository.create(db, fields=request.model_dump())
        self._logger.info(f"Created book {book.id}")
        return BookResponse.model_validate(book)

    @requires_roles(*WRITE_ROLES)
    @cache_evict(BOOKS_SCOPE, BOOK_SCOPE, CATEGORY_SCOPE)
    def update(
        self, db: Session, book_id: int, request: BookRequest, principal: Principal
    ) -> BookResponse:
        """
        Replace every client-editable field of a book.

        The version read here is the one the write is conditioned on, so a
        concurrent update between the read and the write fails with
        StaleBookVersionError instead of being overwritten.
        """
        self._logger.info(f"Updating book {book_id} for {principal.subject}")

        book = self.repository.get(db, book_id=book_id)
        if book is None:
            self._logger.warning(f"Book {book_id} not found for update")
            raise BookNotFoundError(book_id)

        owner = self.repository.get_by_isbn(db, isbn=request.isbn)
        if owner is not None and owner.id != book_id:
            self._logger.warning(f"ISBN {request.isbn} already belongs to book {owner.id}")
            raise DuplicateIsbnError(request.isbn, f"ISBN {request.isbn} is already in use")

        updated = self.repository.update(
            db,
            book_id=book_id,
            expected_version=book.version,
            fields=request.model_dump(),
        )
        self._logger.info(f"Updated book {book_id} to version {updated.version}")
        return BookResponse.model_validate(updated)

    @requires_roles(Role.ADMIN)
    @cache_evict(BOOKS_SCOPE, BOOK_SCOPE, CATEGORY_SCOPE)
    def delete(self, db: Session, book_id: int, principal: Principal) -> None:
        self._logger.info(f"Deleting book {book_id} for {principal.subject}")

        if not self.repository.exists(db, book_id=book_id):
            self._logger.warning(f"Book {book_id} not found for delete")
            raise BookNotFoundError(book_id)

        if not self.repository.delete(db, book_id=book_id):
            # removed by a concurrent delete after the existence check
            self._logger.warning(f"Book {book_id} already deleted")
            raise BookNotFoundError(book_id)

    # -------------------------------------------------------------------------
    # Background report
    # -------------------------------------------------------------------------
    def _load_low_stock(self, bind: Engine | Connection, threshold: int) -> List[BookResponse]:
        # own session: the request's session may be closed while this runs
        with Session(bind=bind, autoflush=False) as session:
            books = self.repository.get_low_stock(session, threshold=threshold)
            self._logger.info(f"Low-stock report: {len(books)} books below {threshold}")
            return [BookResponse.model_validate(book) for book in books]

    @requires_roles(Role.ADMIN)
    def get_low_stock_async(
        self, db: Session, threshold: int, principal: Principal
    ) -> "Future[List[BookResponse]]":
        """
        Submit the low-stock query to the background executor.

        Raises:
            InvalidRequestError: threshold below 1
            TaskRejectedError: executor is full
        """
        if threshold < 1:
            raise InvalidRequestError({"threshold": "Threshold must be at least 1"})
        return get_executor().submit(self._load_low_stock, db.get_bind(), threshold)


book_service = BookService()
