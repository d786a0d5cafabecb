"""
Borrowing Lifecycle Manager

Owns the loan state machine and its coupling to book availability:

    borrow        -> BORROWED, book.available = False
    mark_overdue  -> BORROWED past its due date becomes OVERDUE
    return_book   -> RETURNED, book.available = True

Rules:
- only an available book can be borrowed, and never twice by the same
  borrower while a loan is open
- a book has at most one open loan; availability is claimed with a
  conditional UPDATE so two concurrent borrows cannot both succeed
- the loan row and the availability flag are written in one transaction
- returning twice is an error, the first return date is kept
- mark_overdue is the only code that writes OVERDUE

Time comes from the injected clock and is truncated to dates, so a
14-day loan is due exactly 14 calendar days after it starts.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from library_api.config import get_settings
from library_api.exceptions import BadRequestError, ConflictError, NotFoundError
from library_api.models import OPEN_STATUSES, Borrowing, BorrowingStatus
from library_api.services.books import BookService
from library_api.services.events import Event, EventSink, EventType, get_event_sink
from library_api.utils.clock import Clock, days_between, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReturnResult:
    """Outcome of a return: the updated loan and how late it came back."""

    borrowing: Borrowing
    was_overdue: bool
    days_late: int
    availability_restored: bool = True


class BorrowingService:
    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        events: EventSink | None = None,
        default_borrow_days: int | None = None,
    ):
        self.db = db
        self.clock = clock
        self.events = events or get_event_sink()
        self.default_borrow_days = default_borrow_days or get_settings().default_borrow_days
        self.books = BookService(db, self.events)

    def _today(self) -> date:
        return self.clock().date()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get(self, borrowing_id: int) -> Borrowing:
        borrowing = self.db.get(Borrowing, borrowing_id)
        if borrowing is None:
            logger.warning(f"Borrowing not found: {borrowing_id}")
            raise NotFoundError.for_entity("Borrowing", borrowing_id)
        return borrowing

    def list_borrowings(
        self,
        book_id: int | None = None,
        borrower_email: str | None = None,
        status: BorrowingStatus | None = None,
    ) -> list[Borrowing]:
        """All loans matching every given filter, oldest first."""
        stmt = select(Borrowing)
        if book_id is not None:
            stmt = stmt.where(Borrowing.book_id == book_id)
        if borrower_email:
            stmt = stmt.where(Borrowing.borrower_email == _normalize_email(borrower_email))
        if status is not None:
            stmt = stmt.where(Borrowing.status == status)
        borrowings = list(self.db.execute(stmt.order_by(Borrowing.id.asc())).scalars().all())
        logger.debug(f"Found {len(borrowings)} borrowings")
        return borrowings

    def list_by_book(self, book_id: int) -> list[Borrowing]:
        return self.list_borrowings(book_id=book_id)

    def find_open(self, book_id: int, borrower_email: str) -> Borrowing | None:
        stmt = select(Borrowing).where(
            Borrowing.book_id == book_id,
            Borrowing.borrower_email == _normalize_email(borrower_email),
            Borrowing.status.in_(OPEN_STATUSES),
        )
        return self.db.execute(stmt).scalars().first()

    # -------------------------------------------------------------------------
    # Borrow
    # -------------------------------------------------------------------------
    def borrow(
        self,
        book_id: int,
        borrower_name: str,
        borrower_email: str,
        borrow_days: int | None = None,
    ) -> Borrowing:
        """
        Open a loan for a book.

        Raises:
            BadRequestError: borrow_days < 1, book unavailable, or the
                borrower already holds an open loan on this book
            NotFoundError: no such book
            ConflictError: a concurrent borrow claimed the book first
        """
        borrower_email = _normalize_email(borrower_email)
        logger.debug(f"Borrow request: book {book_id} by {borrower_email}")

        days = self.default_borrow_days if borrow_days is None else borrow_days
        if days < 1:
            raise BadRequestError(f"borrow_days must be at least 1, got {days}")

        book = self.books.get(book_id)

        if not book.available:
            logger.warning(f"Attempt to borrow unavailable book {book_id} by {borrower_email}")
            raise BadRequestError(f'Book "{book.title}" (id {book_id}) is not available for borrowing')

        existing = self.find_open(book_id, borrower_email)
        if existing is not None:
            logger.warning(
                f"Duplicate borrow of book {book_id} by {borrower_email} "
                f"(open borrowing {existing.id})"
            )
            raise BadRequestError(
                f"{borrower_email} already has an open borrowing ({existing.id}) "
                f"for book {book_id}"
            )

        if not self.books.claim(book):
            logger.warning(f"Lost availability race for book {book_id}")
            raise ConflictError(f"Book with id {book_id} was borrowed by someone else just now")

        borrowed_date = self._today()
        borrowing = Borrowing(
            book_id=book_id,
            borrower_name=borrower_name,
            borrower_email=borrower_email,
            borrowed_date=borrowed_date,
            due_date=borrowed_date + timedelta(days=days),
            status=BorrowingStatus.BORROWED,
        )
        self.db.add(borrowing)
        self._commit(f"borrow of book {book_id}")
        self.db.refresh(borrowing)

        logger.info(
            f"Book {book_id} borrowed: borrowing={borrowing.id} "
            f"borrower={borrower_email} due={borrowing.due_date.isoformat()}"
        )
        self.events.record(
            Event(
                EventType.BOOK_BORROWED,
                {
                    "borrowing_id": borrowing.id,
                    "book_id": book_id,
                    "borrower_email": borrower_email,
                    "due_date": borrowing.due_date.isoformat(),
                },
            )
        )
        return borrowing

    # -------------------------------------------------------------------------
    # Return
    # -------------------------------------------------------------------------
    def return_book(self, borrowing_id: int) -> ReturnResult:
        """
        Close a loan and make the book available again.

        If the book can no longer be found the return still succeeds;
        the failure to restore availability is logged and recorded as an
        event.

        Raises:
            NotFoundError: no such borrowing
            BadRequestError: the borrowing was already returned
        """
        borrowing = self.get(borrowing_id)

        if not borrowing.is_open:
            logger.warning(f"Borrowing {borrowing_id} returned twice")
            raise BadRequestError(f"Borrowing with id {borrowing_id} has already been returned")

        today = self._today()
        was_overdue = borrowing.status == BorrowingStatus.OVERDUE or today > borrowing.due_date
        days_late = max(0, days_between(borrowing.due_date, today)) if was_overdue else 0

        borrowing.status = BorrowingStatus.RETURNED
        borrowing.returned_date = today
        restored = self._restore_availability(borrowing)

        self._commit(f"return of borrowing {borrowing_id}")
        self.db.refresh(borrowing)

        if not restored:
            self.events.record(
                Event(
                    EventType.AVAILABILITY_RESTORE_FAILED,
                    {"borrowing_id": borrowing_id, "book_id": borrowing.book_id},
                )
            )
        logger.info(
            f"Borrowing {borrowing_id} returned (overdue={was_overdue}, days_late={days_late})"
        )
        self.events.record(
            Event(
                EventType.BOOK_RETURNED,
                {
                    "borrowing_id": borrowing_id,
                    "book_id": borrowing.book_id,
                    "borrower_email": borrowing.borrower_email,
                    "was_overdue": was_overdue,
                    "days_late": days_late,
                },
            )
        )
        return ReturnResult(
            borrowing=borrowing,
            was_overdue=was_overdue,
            days_late=days_late,
            availability_restored=restored,
        )

    def _restore_availability(self, borrowing: Borrowing) -> bool:
        if borrowing.book_id is None:
            logger.error(f"Borrowing {borrowing.id} has no book; availability not restored")
            return False
        try:
            self.books.set_availability(borrowing.book_id, True, commit=False)
        except NotFoundError:
            logger.error(
                f"Failed to mark book {borrowing.book_id} as available "
                f"after return of borrowing {borrowing.id}"
            )
            return False
        return True

    # -------------------------------------------------------------------------
    # Overdue detection
    # -------------------------------------------------------------------------
    def mark_overdue(self) -> int:
        """
        Move every BORROWED loan whose due date has passed to OVERDUE.

        Already OVERDUE or RETURNED loans are never selected, so running
        this twice in a row changes nothing the second time.

        Returns:
            Number of loans that became overdue
        """
        today = self._today()
        stmt = select(Borrowing).where(
            Borrowing.status == BorrowingStatus.BORROWED,
            Borrowing.due_date < today,
        )
        late = list(self.db.execute(stmt).scalars().all())
        if not late:
            logger.debug("No overdue borrowings found")
            return 0

        for borrowing in late:
            borrowing.status = BorrowingStatus.OVERDUE
        self._commit("overdue sweep")

        for borrowing in late:
            self.events.record(
                Event(
                    EventType.BORROWING_OVERDUE,
                    {
                        "borrowing_id": borrowing.id,
                        "book_id": borrowing.book_id,
                        "borrower_email": borrowing.borrower_email,
                        "due_date": borrowing.due_date.isoformat(),
                        "days_overdue": days_between(borrowing.due_date, today),
                    },
                )
            )
        logger.warning(f"Marked {len(late)} borrowing(s) as overdue")
        return len(late)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Rolled back {action}")
            raise


def _normalize_email(email: str) -> str:
    return email.strip().lower()
