"""
Test Suite for the Library Catalog API

Test Organization:
- conftest.py: Shared fixtures (test database, client, fake clock, event sink, sample data)
- test_books.py: Tests for /api/v1/books endpoints
- test_authors.py: Tests for /api/v1/authors endpoints
- test_borrowings.py: Tests for /api/v1/borrowings endpoints
- test_borrowing_service.py: Service-level lifecycle and catalog invariants
- test_scheduler.py: Overdue sweep scheduler
- test_events.py: Business events and the logging sink
- test_config.py: Settings validation
- test_rate_limiter.py: Per-client write limits

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=library_api --cov-report=html

    # Run specific file
    pytest tests/test_borrowings.py

    # Run with verbose output
    pytest -v
"""
