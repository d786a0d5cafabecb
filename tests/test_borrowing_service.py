"""
Borrowing Lifecycle Tests

Service-level tests for the catalog stores and the borrowing lifecycle,
run against the test session with a fake clock. Covers the catalog
invariants (unique ISBNs, the author guard) and the loan state machine
end to end.
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from library_api.database import Base
from library_api.exceptions import (
    BadRequestError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
)
from library_api.models import Author, Book, Borrowing, BorrowingStatus
from library_api.schemas import AuthorCreate, BookCreate, BookUpdate
from library_api.services.authors import AuthorService
from library_api.services.books import BookService
from library_api.services.borrowings import BorrowingService
from library_api.services.events import EventType


@pytest.fixture
def books(db_session, recorded_events) -> BookService:
    return BookService(db_session, recorded_events)


@pytest.fixture
def authors(db_session, recorded_events) -> AuthorService:
    return AuthorService(db_session, recorded_events)


@pytest.fixture
def make_book(books, sample_author):
    def _make(isbn: str, title: str = "Some Book"):
        return books.create(
            BookCreate(title=title, isbn=isbn, author_id=sample_author.id, published_year=2001)
        )

    return _make


def count_borrowings(db_session) -> int:
    return db_session.execute(select(func.count(Borrowing.id))).scalar()


# =============================================================================
# Example scenarios
# =============================================================================


class TestScenarios:
    """End-to-end flows through the services."""

    def test_borrow_and_return_same_day(self, make_book, borrowing_service, books):
        """Scenario: borrow then return on the same day."""
        book = make_book("111")
        assert book.available is True

        borrowing = borrowing_service.borrow(book.id, "Ann", "ann@example.com")
        assert borrowing.status == BorrowingStatus.BORROWED
        assert books.get(book.id).available is False

        result = borrowing_service.return_book(borrowing.id)

        assert result.borrowing.status == BorrowingStatus.RETURNED
        assert books.get(book.id).available is True
        assert result.was_overdue is False
        assert result.days_late == 0

    def test_overdue_then_return(self, make_book, borrowing_service, fake_clock):
        """Scenario: a one-day loan swept as overdue, returned a day late."""
        book = make_book("B-1")
        borrowing = borrowing_service.borrow(book.id, "Ben", "ben@example.com", borrow_days=1)

        fake_clock.advance(days=2)
        assert borrowing_service.mark_overdue() == 1
        assert borrowing_service.get(borrowing.id).status == BorrowingStatus.OVERDUE

        result = borrowing_service.return_book(borrowing.id)

        assert result.borrowing.status == BorrowingStatus.RETURNED
        assert result.was_overdue is True
        assert result.days_late == 1

    @pytest.mark.parametrize("email", ["ben@example.com", "carol@example.com"])
    def test_borrow_open_book_again(self, make_book, borrowing_service, books, db_session, fake_clock, email):
        """Scenario: a book with an open (even overdue) loan cannot be borrowed."""
        book = make_book("B-2")
        borrowing_service.borrow(book.id, "Ben", "ben@example.com", borrow_days=1)
        fake_clock.advance(days=2)
        borrowing_service.mark_overdue()

        with pytest.raises(BadRequestError):
            borrowing_service.borrow(book.id, "Someone", email)

        assert count_borrowings(db_session) == 1
        assert books.get(book.id).available is False

    def test_author_guard(self, authors, books):
        """Scenario: an author with no books can go, one with a book cannot."""
        x = authors.create(AuthorCreate(first_name="Xavier", last_name="X"))
        authors.delete(x.id)
        with pytest.raises(NotFoundError):
            authors.get(x.id)

        y = authors.create(AuthorCreate(first_name="Yvonne", last_name="Y"))
        book = books.create(BookCreate(title="Y's Book", isbn="Y-1", author_id=y.id, published_year=1999))

        with pytest.raises(ConflictError, match="1 book"):
            authors.delete(y.id)

        assert authors.get(y.id).full_name == "Yvonne Y"
        assert books.get(book.id).author_id == y.id

    def test_duplicate_isbn(self, make_book, books):
        """Scenario: the second book with ISBN 222 is rejected, the first is untouched."""
        first = make_book("222", title="First")

        with pytest.raises(DuplicateKeyError):
            make_book("222", title="Second")

        found = books.get(first.id)
        assert found.title == "First"
        assert books.list_books().total == 1


# =============================================================================
# Borrow
# =============================================================================


class TestBorrow:
    """Tests for BorrowingService.borrow."""

    def test_due_date_arithmetic(self, make_book, borrowing_service, fake_clock):
        """A 14-day loan is due exactly 14 days later, whatever the time of day."""
        fake_clock.advance(hours=11, minutes=59)  # 23:59 UTC
        borrowing = borrowing_service.borrow(make_book("D-1").id, "Dee", "dee@example.com", borrow_days=14)

        assert borrowing.due_date - borrowing.borrowed_date == timedelta(days=14)
        assert borrowing.borrowed_date == fake_clock.today()

    def test_default_loan_period(self, make_book, borrowing_service):
        borrowing = borrowing_service.borrow(make_book("D-2").id, "Dee", "dee@example.com")

        assert (borrowing.due_date - borrowing.borrowed_date).days == 14

    def test_configured_default_loan_period(self, make_book, db_session, fake_clock, recorded_events):
        service = BorrowingService(db_session, clock=fake_clock, events=recorded_events, default_borrow_days=21)

        borrowing = service.borrow(make_book("D-3").id, "Dee", "dee@example.com")

        assert (borrowing.due_date - borrowing.borrowed_date).days == 21

    @pytest.mark.parametrize("days", [0, -3])
    def test_invalid_loan_period(self, make_book, borrowing_service, books, days):
        book = make_book("D-4")

        with pytest.raises(BadRequestError, match="at least 1"):
            borrowing_service.borrow(book.id, "Dee", "dee@example.com", borrow_days=days)

        assert books.get(book.id).available is True

    def test_duplicate_open_loan_same_borrower(self, make_book, borrowing_service, books):
        """
        The same borrower cannot hold two open loans on one book, even
        after an admin marked the book available again.
        """
        book = make_book("D-5")
        first = borrowing_service.borrow(book.id, "Dee", "dee@example.com")
        books.update(book.id, BookUpdate(available=True))

        with pytest.raises(BadRequestError, match=f"open borrowing \\({first.id}\\)"):
            borrowing_service.borrow(book.id, "Dee", "DEE@example.com")

    def test_lost_availability_race(self, make_book, borrowing_service, db_session, monkeypatch):
        """When the conditional update matches no row the borrow is a conflict."""
        book = make_book("D-6")
        monkeypatch.setattr(borrowing_service.books, "claim", lambda b: False)

        with pytest.raises(ConflictError):
            borrowing_service.borrow(book.id, "Dee", "dee@example.com")

        assert count_borrowings(db_session) == 0

    def test_claim_only_once(self, make_book, books):
        """The conditional update succeeds for the first claim only."""
        book = make_book("D-7")

        assert books.claim(book) is True
        assert books.claim(book) is False
        assert book.available is False

    def test_borrow_unknown_book(self, borrowing_service):
        with pytest.raises(NotFoundError, match="Book with id 404 not found"):
            borrowing_service.borrow(404, "Dee", "dee@example.com")

    def test_borrow_records_event(self, make_book, borrowing_service, recorded_events):
        book = make_book("D-8")

        borrowing = borrowing_service.borrow(book.id, "Dee", "dee@example.com")

        (event,) = recorded_events.of_type(EventType.BOOK_BORROWED)
        assert event.data["borrowing_id"] == borrowing.id
        assert event.data["due_date"] == "2024-01-15"


# =============================================================================
# Return
# =============================================================================


class TestReturn:
    """Tests for BorrowingService.return_book."""

    def test_return_twice_keeps_first_date(self, sample_borrowing, borrowing_service, fake_clock):
        assert sample_borrowing.is_open
        fake_clock.advance(days=3)
        borrowing_service.return_book(sample_borrowing.id)
        fake_clock.advance(days=4)

        with pytest.raises(BadRequestError, match="already been returned"):
            borrowing_service.return_book(sample_borrowing.id)

        loan = borrowing_service.get(sample_borrowing.id)
        assert loan.returned_date == (fake_clock.now - timedelta(days=4)).date()
        assert loan.status == BorrowingStatus.RETURNED
        assert not loan.is_open

    def test_return_on_due_date_is_not_late(self, sample_borrowing, borrowing_service, fake_clock):
        fake_clock.advance(days=14)

        result = borrowing_service.return_book(sample_borrowing.id)

        assert result.was_overdue is False
        assert result.days_late == 0

    def test_return_unknown_borrowing(self, borrowing_service):
        with pytest.raises(NotFoundError):
            borrowing_service.return_book(12345)

    def test_return_after_book_deleted(self, sample_borrowing, borrowing_service, db_session, recorded_events):
        """
        A loan whose book vanished still closes; the failed availability
        restore is reported as an event.
        """
        sample_borrowing.book_id = None
        db_session.commit()

        result = borrowing_service.return_book(sample_borrowing.id)

        assert result.borrowing.status == BorrowingStatus.RETURNED
        assert result.availability_restored is False
        assert recorded_events.of_type(EventType.AVAILABILITY_RESTORE_FAILED)

    def test_return_records_event(self, sample_borrowing, borrowing_service, fake_clock, recorded_events):
        fake_clock.advance(days=20)

        borrowing_service.return_book(sample_borrowing.id)

        (event,) = recorded_events.of_type(EventType.BOOK_RETURNED)
        assert event.data["was_overdue"] is True
        assert event.data["days_late"] == 6


# =============================================================================
# Overdue sweep
# =============================================================================


class TestMarkOverdue:
    """Tests for BorrowingService.mark_overdue."""

    def test_nothing_due(self, sample_borrowing, borrowing_service, fake_clock):
        fake_clock.advance(days=14)

        assert borrowing_service.mark_overdue() == 0
        assert borrowing_service.get(sample_borrowing.id).status == BorrowingStatus.BORROWED

    def test_sweep_is_idempotent(self, make_book, borrowing_service, fake_clock, recorded_events):
        for i in range(3):
            borrowing_service.borrow(make_book(f"S-{i}").id, "Sam", f"sam{i}@example.com", borrow_days=1 + i)
        fake_clock.advance(days=3)

        assert borrowing_service.mark_overdue() == 2
        assert borrowing_service.mark_overdue() == 0

        overdue = borrowing_service.list_borrowings(status=BorrowingStatus.OVERDUE)
        assert len(overdue) == 2
        assert len(recorded_events.of_type(EventType.BORROWING_OVERDUE)) == 2

    def test_returned_loans_are_skipped(self, sample_borrowing, borrowing_service, fake_clock):
        borrowing_service.return_book(sample_borrowing.id)
        fake_clock.advance(days=30)

        assert borrowing_service.mark_overdue() == 0
        assert borrowing_service.get(sample_borrowing.id).status == BorrowingStatus.RETURNED

    def test_overdue_event_payload(self, sample_borrowing, borrowing_service, fake_clock, recorded_events):
        fake_clock.advance(days=16)

        borrowing_service.mark_overdue()

        (event,) = recorded_events.of_type(EventType.BORROWING_OVERDUE)
        assert event.data["borrowing_id"] == sample_borrowing.id
        assert event.data["days_overdue"] == 2


# =============================================================================
# Book store rules touched by loans
# =============================================================================


class TestBookStoreWithLoans:
    """Deleting books and overriding availability while loans exist."""

    def test_delete_book_on_loan(self, sample_book, sample_borrowing, books):
        with pytest.raises(ConflictError, match="currently borrowed"):
            books.delete(sample_book.id)

        assert books.get(sample_book.id).title == "1984"

    def test_delete_book_after_return(self, sample_book, sample_borrowing, books, borrowing_service):
        borrowing_service.return_book(sample_borrowing.id)

        books.delete(sample_book.id)

        assert borrowing_service.get(sample_borrowing.id).book_id is None
        with pytest.raises(NotFoundError):
            books.get(sample_book.id)

    def test_list_by_book(self, sample_book, sample_borrowing, borrowing_service):
        borrowing_service.return_book(sample_borrowing.id)
        second = borrowing_service.borrow(sample_book.id, "Zed", "zed@example.com")

        history = borrowing_service.list_by_book(sample_book.id)

        assert [b.id for b in history] == [sample_borrowing.id, second.id]


# =============================================================================
# Two sessions on one database
# =============================================================================


@pytest.fixture
def open_session(tmp_path):
    """
    Session factory on a file-backed SQLite database.

    Unlike the shared in-memory connection, every session here gets its
    own connection, so one session can commit behind another's back.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    opened: list[Session] = []

    def _open() -> Session:
        session = factory()
        opened.append(session)
        return session

    yield _open

    for session in opened:
        session.close()
    engine.dispose()


@pytest.fixture
def shared_author_id(open_session) -> int:
    session = open_session()
    author = Author(first_name="Ursula", last_name="Le Guin", nationality="American")
    session.add(author)
    session.commit()
    return author.id


class TestConcurrentSessions:
    """Catalog invariants when two sessions race on the same rows."""

    def test_isbn_taken_between_check_and_commit(
        self, open_session, shared_author_id, recorded_events, monkeypatch
    ):
        """A unique violation at commit is rolled back and reported as a duplicate."""
        first = BookService(open_session(), recorded_events)
        second = BookService(open_session(), recorded_events)
        data = BookCreate(
            title="The Dispossessed",
            isbn="9780061054884",
            author_id=shared_author_id,
            published_year=1974,
        )

        check_isbn = second._ensure_isbn_free

        def check_then_lose_race(isbn, exclude_id=None):
            check_isbn(isbn, exclude_id)
            first.create(data)

        monkeypatch.setattr(second, "_ensure_isbn_free", check_then_lose_race)

        with pytest.raises(DuplicateKeyError, match="already exists"):
            second.create(data)

        monkeypatch.undo()
        assert len(recorded_events.of_type(EventType.BOOK_CREATED)) == 1

        # The losing session was rolled back and keeps working
        assert second.find_by_isbn(data.isbn) is not None
        other = second.create(
            BookCreate(
                title="The Left Hand of Darkness",
                isbn="9780441478125",
                author_id=shared_author_id,
                published_year=1969,
            )
        )
        assert other.id is not None

    def test_stale_book_cannot_be_borrowed_twice(
        self, open_session, shared_author_id, fake_clock, recorded_events
    ):
        """Both sessions saw the book as available; only the first borrow wins."""
        setup = open_session()
        book = Book(title="Earthsea", isbn="9780547773742", author_id=shared_author_id, published_year=1968)
        setup.add(book)
        setup.commit()
        book_id = book.id

        first_db, second_db = open_session(), open_session()
        assert first_db.get(Book, book_id).available is True
        assert second_db.get(Book, book_id).available is True

        winner = BorrowingService(first_db, clock=fake_clock, events=recorded_events)
        loser = BorrowingService(second_db, clock=fake_clock, events=recorded_events)

        winner.borrow(book_id, "Ged", "ged@example.com")
        with pytest.raises(ConflictError, match="borrowed by someone else"):
            loser.borrow(book_id, "Tenar", "tenar@example.com")
        second_db.rollback()

        check = open_session()
        assert count_borrowings(check) == 1
        assert check.get(Book, book_id).available is False
        assert len(recorded_events.of_type(EventType.BOOK_BORROWED)) == 1
