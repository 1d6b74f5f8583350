#!/usr/bin/env python3
"""
Database Seed Script

Loads a starter catalogue of ten technical books for local development.

USAGE:
    python scripts/seed_data.py           # add books whose ISBN is not present
    python scripts/seed_data.py --clear   # delete every book first

Books are inserted through BookRepository, so they start at version 0
like any book created over the API. Existing ISBNs are skipped, which
makes the script safe to run repeatedly.
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookapi.crud import book_repository
from bookapi.database import SessionLocal, create_tables
from bookapi.models import Book
from bookapi.services.cache import close_cache_store, get_cache_store


SAMPLE_BOOKS = [
    ("Spring Boot in Action", "Craig Walls", "9781617292545", "39.99",
     "Comprehensive guide to Spring Boot development", 25),
    ("Clean Code", "Robert C. Martin", "9780132350884", "42.99",
     "A handbook of agile software craftsmanship", 15),
    ("Effective Java", "Joshua Bloch", "9780134685991", "54.99",
     "Best practices for the Java platform", 30),
    ("Design Patterns", "Gang of Four", "9780201633612", "59.99",
     "Elements of reusable object-oriented software", 20),
    ("The Pragmatic Programmer", "David Thomas", "9780135957059", "49.99",
     "Your journey to mastery", 18),
    ("Microservices Patterns", "Chris Richardson", "9781617294549", "44.99",
     "With examples in Java", 22),
    ("Java Concurrency in Practice", "Brian Goetz", "9780321349606", "52.99",
     "Essential guide to concurrent programming", 12),
    ("Spring Security in Action", "Laurentiu Spilca", "9781617297731", "47.99",
     "Secure your applications", 28),
    ("Building Microservices", "Sam Newman", "9781491950357", "41.99",
     "Designing fine-grained systems", 16),
    ("Docker Deep Dive", "Nigel Poulton", "9781521822807", "35.99",
     "Zero to Docker in a single book", 24),
]


def clear_data(db: Session) -> None:
    """Delete every book."""
    print("Clearing existing books...")
    result = db.execute(delete(Book))
    db.commit()
    print(f"Deleted {result.rowcount} books.")


def create_books(db: Session) -> list[Book]:
    """Insert the sample books that are not already present."""
    print("Creating books...")
    created = []

    for title, author, isbn, price, description, stock in SAMPLE_BOOKS:
        if book_repository.exists_by_isbn(db, isbn=isbn):
            print(f"  skip {isbn} ({title}): already present")
            continue

        book = book_repository.create(
            db,
            fields={
                "title": title,
                "author": author,
                "isbn": isbn,
                "price": Decimal(price),
                "category": "Technology",
                "description": description,
                "stock_quantity": stock,
            },
        )
        created.append(book)

    print(f"Created {len(created)} books.")
    return created


def seed_database(clear_existing: bool = False) -> None:
    """
    Seed the books table.

    Args:
        clear_existing: If True, deletes all books before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        books = create_books(db)

        # cached listings no longer match the table
        get_cache_store().clear()

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print(f"\nBooks added: {len(books)}")
        print(f"Books in catalogue: {book_repository.count(db)}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        close_cache_store()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the book inventory database.")
    parser.add_argument("--clear", action="store_true", help="delete all books before seeding")
    args = parser.parse_args()

    seed_database(clear_existing=args.clear)


if __name__ == "__main__":
    main()
