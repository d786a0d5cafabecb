"""
pytest Fixtures for Library Catalog API Tests

This file contains shared fixtures used across all test files.

FIXTURE SCOPES:
- session scope for the engine (expensive to create)
- function scope for sessions, clocks and event sinks (isolation between tests)

Time and business events are injected into the services, so tests
control the date with ``fake_clock`` and inspect events through
``recorded_events`` instead of sleeping or parsing logs.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# No rate limiting, no background sweep, no PostgreSQL driver needed
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OVERDUE_SWEEP_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from collections.abc import Generator
from datetime import UTC, date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from library_api.database import Base, get_db
from library_api.dependencies import get_clock
from library_api.main import app
from library_api.models import Author, Book, Borrowing
from library_api.services.borrowings import BorrowingService
from library_api.services.events import Event, EventType, get_event_sink


# =============================================================================
# TEST DOUBLES
# =============================================================================
class FakeClock:
    """
    A clock that only moves when told to.

    Usage:
        clock = FakeClock(datetime(2024, 1, 1, 12, tzinfo=UTC))
        clock.advance(days=15)
    """

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, **kwargs) -> None:
        self.now += timedelta(days=days, **kwargs)

    def today(self) -> date:
        return self.now.date()


class RecordingEventSink:
    """Keeps every recorded event in memory."""

    def __init__(self):
        self.events: list[Event] = []

    def record(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.events if e.type == event_type]


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, SQLite in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session is wrapped in a transaction that's rolled back,
    ensuring test isolation without needing to recreate tables.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock frozen at noon UTC on 2024-01-01."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def recorded_events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def borrowing_service(
    db_session: Session,
    fake_clock: FakeClock,
    recorded_events: RecordingEventSink,
) -> BorrowingService:
    """BorrowingService on the test session, clock and event sink."""
    return BorrowingService(
        db_session,
        clock=fake_clock,
        events=recorded_events,
        default_borrow_days=14,
    )


@pytest.fixture(scope="function")
def client(
    db_session: Session,
    fake_clock: FakeClock,
    recorded_events: RecordingEventSink,
) -> Generator[TestClient, None, None]:
    """
    Create a test client wired to the test database, clock and event sink.

    We override the dependencies the services are built from.
    """

    def override_get_db():
        """Provide test database session instead of real one."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fake_clock
    app.dependency_overrides[get_event_sink] = lambda: recorded_events

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def sample_author(db_session: Session) -> Author:
    """Create a sample author for testing."""
    author = Author(
        first_name="George",
        last_name="Orwell",
        date_of_birth=date(1903, 6, 25),
        nationality="British",
        biography="English novelist and essayist, journalist and critic.",
    )
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def second_author(db_session: Session) -> Author:
    author = Author(first_name="Jane", last_name="Austen", nationality="British")
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def sample_book(db_session: Session, sample_author: Author) -> Book:
    """Create an available sample book by sample_author."""
    book = Book(
        title="1984",
        isbn="9780451524935",
        author_id=sample_author.id,
        published_year=1949,
        genre="Dystopian Fiction",
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(
    db_session: Session,
    sample_author: Author,
    second_author: Author,
) -> list[Book]:
    """
    Create 15 books for pagination and filter testing.

    Even-numbered books belong to sample_author, odd-numbered ones to
    second_author; every third book is unavailable and genres alternate
    between "Science Fiction" and "Romance".
    """
    books = []
    for i in range(15):
        book = Book(
            title=f"Test Book {i + 1}",
            isbn=f"97800000000{i:02d}",
            author_id=sample_author.id if i % 2 == 0 else second_author.id,
            published_year=1950 + i,
            genre="Science Fiction" if i % 2 == 0 else "Romance",
            available=i % 3 != 0,
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books


@pytest.fixture
def sample_borrowing(
    borrowing_service: BorrowingService,
    sample_book: Book,
) -> Borrowing:
    """An open 14-day loan of sample_book starting on the fake clock's date."""
    return borrowing_service.borrow(
        book_id=sample_book.id,
        borrower_name="John Doe",
        borrower_email="john.doe@example.com",
    )
