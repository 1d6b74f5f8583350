"""
Tests for BookRepository

Query semantics and the write-side guarantees the service relies on:
unique ISBNs at the table level and compare-and-swap versioned updates.
"""

from decimal import Decimal

import pytest

from bookapi.crud import book_repository
from bookapi.exceptions import BookNotFoundError, DuplicateIsbnError, StaleBookVersionError
from bookapi.models import Book
from bookapi.schemas import PageRequest


def fields(**overrides) -> dict:
    values = {
        "title": "Refactoring",
        "author": "Martin Fowler",
        "isbn": "9780134757599",
        "price": Decimal("47.99"),
        "category": "Programming",
        "description": None,
        "stock_quantity": 8,
    }
    values.update(overrides)
    return values


class TestLookups:
    def test_get_missing_returns_none(self, db_session):
        assert book_repository.get(db_session, book_id=1) is None
        assert book_repository.get_by_isbn(db_session, isbn="9780134757599") is None
        assert book_repository.exists(db_session, book_id=1) is False

    def test_exists_by_isbn(self, db_session, sample_book):
        assert book_repository.exists_by_isbn(db_session, isbn="9780132350884") is True
        assert book_repository.exists_by_isbn(db_session, isbn="9780134757599") is False


class TestPagedQueries:
    def test_get_page_counts_and_slices(self, db_session, sample_books):
        books, total = book_repository.get_page(db_session, page_request=PageRequest(page=0, size=2))

        assert total == 4
        assert [book.title for book in books] == ["Clean Code", "Effective Java"]

    def test_sort_descending_by_price(self, db_session, sample_books):
        request = PageRequest.parse(sort="price,desc")

        books, _ = book_repository.get_page(db_session, page_request=request)

        assert [book.price for book in books] == [
            Decimal("45.00"),
            Decimal("42.99"),
            Decimal("39.99"),
            Decimal("29.99"),
        ]

    def test_search_title_or_author(self, db_session, sample_books):
        books, total = book_repository.search(db_session, term="java", page_request=PageRequest())

        assert total == 2
        assert {book.title for book in books} == {"Effective Java", "Java Fundamentals"}

    def test_search_folds_non_ascii_case(self, db_session):
        book_repository.create(db_session, fields=fields(title="Élan Vital", author="Henri Bergson"))

        for term in ("élan", "ÉLAN", "vital"):
            _, total = book_repository.search(db_session, term=term, page_request=PageRequest())
            assert total == 1, term

    def test_search_treats_wildcards_literally(self, db_session, sample_books):
        _, total = book_repository.search(db_session, term="%", page_request=PageRequest())

        assert total == 0

    def test_category_is_exact(self, db_session, sample_books):
        _, total = book_repository.get_page_by_category(
            db_session, category="programming", page_request=PageRequest()
        )

        assert total == 0


class TestLowStock:
    def test_strictly_below_threshold(self, db_session, sample_books):
        books = book_repository.get_low_stock(db_session, threshold=15)

        assert [book.stock_quantity for book in books] == [12]

    def test_ordered_by_quantity(self, db_session, sample_books):
        books = book_repository.get_low_stock(db_session, threshold=26)

        assert [book.stock_quantity for book in books] == [12, 15, 25]


class TestWrites:
    def test_create_starts_at_version_zero(self, db_session):
        book = book_repository.create(db_session, fields=fields())

        assert book.id is not None
        assert book.version == 0
        assert book_repository.count(db_session) == 1

    def test_unique_isbn_enforced_by_table(self, db_session, sample_book):
        with pytest.raises(DuplicateIsbnError):
            book_repository.create(db_session, fields=fields(isbn=sample_book.isbn))

        # session is usable again after the rollback
        assert book_repository.count(db_session) == 1

    def test_update_bumps_version_and_timestamp(self, db_session, sample_book):
        created_at = sample_book.created_at
        updated_at = sample_book.updated_at

        book = book_repository.update(
            db_session,
            book_id=sample_book.id,
            expected_version=0,
            fields=fields(isbn=sample_book.isbn, stock_quantity=3),
        )

        assert book.version == 1
        assert book.stock_quantity == 3
        assert book.created_at == created_at
        assert book.updated_at >= updated_at

    def test_stale_version_rejected(self, db_session, sample_book):
        book_repository.update(
            db_session, book_id=sample_book.id, expected_version=0, fields=fields(isbn=sample_book.isbn)
        )

        with pytest.raises(StaleBookVersionError):
            book_repository.update(
                db_session,
                book_id=sample_book.id,
                expected_version=0,
                fields=fields(isbn=sample_book.isbn, title="Lost update"),
            )

        book = db_session.get(Book, sample_book.id, populate_existing=True)
        assert book.title == "Refactoring"
        assert book.version == 1

    def test_update_deleted_book(self, db_session, sample_book):
        book_id = sample_book.id
        book_repository.delete(db_session, book_id=book_id)

        with pytest.raises(BookNotFoundError):
            book_repository.update(db_session, book_id=book_id, expected_version=0, fields=fields())

    def test_update_into_taken_isbn(self, db_session, sample_books):
        with pytest.raises(DuplicateIsbnError):
            book_repository.update(
                db_session,
                book_id=sample_books[0].id,
                expected_version=0,
                fields=fields(isbn=sample_books[1].isbn),
            )

    def test_delete_reports_missing(self, db_session):
        assert book_repository.delete(db_session, book_id=42) is False
