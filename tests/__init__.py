"""
Test Suite for the Book Inventory API

Test Organization:
- conftest.py: shared fixtures (in-memory database, client, tokens, sample books)
- test_books.py: /api/v1/books endpoints end to end
- test_book_service.py: service rules, role checks and cache eviction
- test_repository.py: queries and versioned writes
- test_schemas.py: request validation, paging and links
- test_cache.py, test_security.py, test_tasks.py: infrastructure pieces

Running Tests:
    pytest
    pytest tests/test_books.py -v
    pytest tests/test_books.py::TestUpdateBook
"""
