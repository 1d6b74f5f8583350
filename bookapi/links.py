"""
Hypermedia links for book representations.

Links are derived only from the book id and the API prefix, so they can
be attached to cached responses without touching the database.
"""

from bookapi.config import get_settings
from bookapi.schemas.book import (
    BookLinks,
    BookPage,
    BookPageResource,
    BookResource,
    BookResponse,
    Link,
    PageLinks,
)


def collection_href(api_prefix: str | None = None) -> str:
    prefix = api_prefix if api_prefix is not None else get_settings().api_prefix
    return f"{prefix}/books"


def book_links(book_id: int, api_prefix: str | None = None) -> BookLinks:
    """
    Links for one book.

    Example:
        >>> book_links(7, "/api/v1").update.href
        '/api/v1/books/7'
    """
    collection = collection_href(api_prefix)
    href = f"{collection}/{book_id}"
    return BookLinks(
        self_=Link(href=href),
        update=Link(href=href, method="PUT"),
        delete=Link(href=href, method="DELETE"),
        books=Link(href=collection),
    )


def to_resource(book: BookResponse) -> BookResource:
    return BookResource(**book.model_dump(), links=book_links(book.id))


def to_page_resource(page: BookPage, self_href: str) -> BookPageResource:
    return BookPageResource(
        items=[to_resource(book) for book in page.items],
        page=page.page,
        links=PageLinks(self_=Link(href=self_href)),
    )
