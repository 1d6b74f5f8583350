"""
pytest Fixtures for Book Inventory API Tests

FIXTURE SCOPES:
- engine: function scope, a fresh in-memory SQLite database per test.
  Repository writes commit and roll back on their own, so an outer
  rolled-back transaction would not isolate tests reliably.
- db_session: function scope, one session on that engine
- client: TestClient with get_db overridden to the test session

Bearer tokens for each role are minted with the same signing key the app
verifies with.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# Set environment variables BEFORE importing the app: settings are cached
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from collections.abc import Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookapi.database import Base, get_db
from bookapi.main import app
from bookapi.models import Book
from bookapi.services.cache import get_cache_store
from bookapi.services.security import Principal, Role, create_access_token

API = "/api/v1/books"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture
def engine():
    """
    SQLite in-memory engine with its own schema.

    StaticPool keeps the single connection alive; without it the in-memory
    database would vanish between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests all use the test session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_cache() -> Generator[None, None, None]:
    """Every test starts with an empty cache; ids repeat across databases."""
    get_cache_store().clear()
    yield
    get_cache_store().clear()


# =============================================================================
# AUTH FIXTURES
# =============================================================================
def bearer(subject: str, *roles: Role) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, roles)}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return bearer("reader", Role.USER)


@pytest.fixture
def librarian_headers() -> dict[str, str]:
    return bearer("librarian", Role.LIBRARIAN)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer("admin", Role.ADMIN)


@pytest.fixture
def user() -> Principal:
    return Principal(subject="reader", roles=frozenset({Role.USER}))


@pytest.fixture
def librarian() -> Principal:
    return Principal(subject="librarian", roles=frozenset({Role.LIBRARIAN}))


@pytest.fixture
def admin() -> Principal:
    return Principal(subject="admin", roles=frozenset({Role.ADMIN}))


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def book_payload() -> dict:
    """Valid create/update body in wire format."""
    return {
        "title": "T",
        "author": "A",
        "isbn": "9780132350884",
        "price": 10.00,
        "stockQuantity": 5,
    }


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    book = Book(
        title="Clean Code",
        author="Robert C. Martin",
        isbn="9780132350884",
        price=Decimal("42.99"),
        category="Programming",
        description="A handbook of agile software craftsmanship",
        stock_quantity=12,
        version=0,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def sample_books(db_session: Session) -> list[Book]:
    """Four books with stock levels 25, 15, 12 and 30."""
    books = [
        Book(
            title="Spring Boot Guide",
            author="Craig Walls",
            isbn="9781617294945",
            price=Decimal("39.99"),
            category="Frameworks",
            stock_quantity=25,
        ),
        Book(
            title="Java Fundamentals",
            author="Herbert Schildt",
            isbn="9781260440232",
            price=Decimal("29.99"),
            category="Programming",
            stock_quantity=15,
        ),
        Book(
            title="Clean Code",
            author="Robert C. Martin",
            isbn="9780132350884",
            price=Decimal("42.99"),
            category="Programming",
            stock_quantity=12,
        ),
        Book(
            title="Effective Java",
            author="Joshua Bloch",
            isbn="9780134685991",
            price=Decimal("45.00"),
            category="Programming",
            stock_quantity=30,
        ),
    ]
    db_session.add_all(books)
    db_session.commit()
    for book in books:
        db_session.refresh(book)
    return books
