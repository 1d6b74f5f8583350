"""
Books Router

CRUD, search, category and low-stock endpoints under /api/v1/books.

Route access:
- GET (list, detail, search, category): USER, LIBRARIAN, ADMIN
- POST, PUT: LIBRARIAN, ADMIN
- DELETE, GET /low-stock: ADMIN

Handlers stay thin: they resolve the caller and paging, call the service,
and wrap each book with navigation links. Failures are raised as domain
exceptions and rendered by bookapi.errors.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Path, Query, Request, Response, status

from bookapi.config import get_settings
from bookapi.dependencies import Admin, DbSession, Editor, Paging, Reader
from bookapi.links import book_links, to_page_resource, to_resource
from bookapi.schemas import BookPageResource, BookRequest, BookResource, ProblemDetail
from bookapi.services.books import book_service
from bookapi.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        400: {"model": ProblemDetail, "description": "Validation error"},
        401: {"model": ProblemDetail, "description": "Missing or invalid bearer token"},
        403: {"model": ProblemDetail, "description": "Insufficient role"},
    },
)


def _self_href(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


# =============================================================================
# Collection and query endpoints
# =============================================================================
# Static paths are registered before /{book_id}.

@router.get(
    "",
    response_model=BookPageResource,
    summary="List all books",
    description="Paginated list of all books, sorted by title by default.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    page_request: Paging,
    principal: Reader,
) -> BookPageResource:
    logger.info(f"List books page={page_request.page} size={page_request.size} sort={page_request.sort}")
    page = book_service.get_all(db, page_request)
    return to_page_resource(page, _self_href(request))


@router.get(
    "/search",
    response_model=BookPageResource,
    summary="Search books",
    description="Case-insensitive substring match on title or author.",
)
@limiter.limit(settings.rate_limit_default)
def search_books(
    request: Request,
    db: DbSession,
    page_request: Paging,
    principal: Reader,
    q: str = Query(
        ...,
        min_length=1,
        max_length=100,
        description="Text to look for in title or author",
        examples=["spring", "martin"],
    ),
) -> BookPageResource:
    logger.info(f"Search books q={q!r}")
    page = book_service.search(db, q, page_request)
    return to_page_resource(page, _self_href(request))


@router.get(
    "/category/{category}",
    response_model=BookPageResource,
    summary="List books in a category",
    description="Paginated list of books whose category matches exactly.",
)
@limiter.limit(settings.rate_limit_default)
def list_books_by_category(
    request: Request,
    db: DbSession,
    page_request: Paging,
    principal: Reader,
    category: str = Path(..., min_length=1, max_length=50),
) -> BookPageResource:
    logger.info(f"List books in category {category!r}")
    page = book_service.get_by_category(db, category, page_request)
    return to_page_resource(page, _self_href(request))


@router.get(
    "/low-stock",
    response_model=List[BookResource],
    summary="Low stock report",
    description="Books with stock strictly below the threshold, lowest first. Runs on the background executor.",
    responses={503: {"model": ProblemDetail, "description": "Background executor is full"}},
)
@limiter.limit(settings.rate_limit_default)
async def low_stock_books(
    request: Request,
    db: DbSession,
    principal: Admin,
    threshold: int = Query(..., ge=1, description="Stock level to compare against", examples=[5]),
) -> List[BookResource]:
    logger.info(f"Low-stock report threshold={threshold}")
    future = book_service.get_low_stock_async(db, threshold, principal)
    books = await asyncio.wrap_future(future)
    return [to_resource(book) for book in books]


@router.post(
    "",
    response_model=BookResource,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    responses={409: {"model": ProblemDetail, "description": "ISBN already exists"}},
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    response: Response,
    book_data: BookRequest,
    db: DbSession,
    principal: Editor,
) -> BookResource:
    """
    Create a book. The ISBN is stored normalized; the new book starts at
    version 0 and its URL is returned in the Location header.
    """
    book = book_service.create(db, book_data, principal)
    logger.info(f"Created book id={book.id} isbn={book.isbn}")
    response.headers["Location"] = book_links(book.id).self_.href
    return to_resource(book)


# =============================================================================
# Item endpoints
# =============================================================================
@router.get(
    "/{book_id}",
    response_model=BookResource,
    summary="Get a book by ID",
    responses={404: {"model": ProblemDetail, "description": "Book not found"}},
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    db: DbSession,
    principal: Reader,
    book_id: int = Path(..., ge=1),
) -> BookResource:
    logger.info(f"Get book id={book_id}")
    return to_resource(book_service.get_by_id(db, book_id))


@router.put(
    "/{book_id}",
    response_model=BookResource,
    summary="Replace a book",
    responses={
        404: {"model": ProblemDetail, "description": "Book not found"},
        409: {"model": ProblemDetail, "description": "ISBN in use or concurrent modification"},
    },
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_data: BookRequest,
    db: DbSession,
    principal: Editor,
    book_id: int = Path(..., ge=1),
) -> BookResource:
    """
    Replace all client-editable fields. The version goes up by one; a
    concurrent modification is reported as 409 and should be retried
    after re-reading the book.
    """
    logger.info(f"Update book id={book_id}")
    return to_resource(book_service.update(db, book_id, book_data, principal))


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    responses={404: {"model": ProblemDetail, "description": "Book not found"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    db: DbSession,
    principal: Admin,
    book_id: int = Path(..., ge=1),
) -> None:
    logger.info(f"Delete book id={book_id}")
    book_service.delete(db, book_id, principal)
