"""
Book Store

Persistence plus the two invariants the catalog owns for books:
- ISBNs are unique across the catalog
- a book with an open loan cannot be deleted

``set_availability`` is reserved for the borrowing workflow; catalog
edits go through ``update``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from library_api.exceptions import ConflictError, DuplicateKeyError, NotFoundError
from library_api.models import OPEN_STATUSES, Author, Book, Borrowing
from library_api.schemas.book import BookCreate, BookUpdate
from library_api.services.events import Event, EventSink, EventType, get_event_sink
from library_api.utils.pagination import page_count, page_offset

logger = logging.getLogger(__name__)

T = TypeVar("T")

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Lower-cased LIKE pattern matching 'text' literally anywhere in a value."""
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text.lower()}%"


@dataclass
class Page(Generic[T]):
    """One page of results plus the numbers a client needs to page on."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return page_count(self.total, self.limit)


@dataclass
class BookFilter:
    """
    Book list filters. All set fields must match (they combine with AND).

    genre matches case-insensitively on a substring, so "fic" finds
    "Fiction" and "Science Fiction".
    """

    author_id: int | None = None
    genre: str | None = None
    available: bool | None = None

    def apply(self, stmt):
        if self.author_id is not None:
            stmt = stmt.where(Book.author_id == self.author_id)
        if self.genre:
            stmt = stmt.where(
                func.lower(Book.genre).like(contains_pattern(self.genre), escape=LIKE_ESCAPE)
            )
        if self.available is not None:
            stmt = stmt.where(Book.available.is_(self.available))
        return stmt


class BookService:
    """CRUD for books with ISBN uniqueness and availability bookkeeping."""

    def __init__(self, db: Session, events: EventSink | None = None):
        self.db = db
        self.events = events or get_event_sink()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get(self, book_id: int) -> Book:
        book = self.db.get(Book, book_id)
        if book is None:
            logger.warning(f"Book not found: {book_id}")
            raise NotFoundError.for_entity("Book", book_id)
        return book

    def find_by_isbn(self, isbn: str) -> Book | None:
        return self.db.execute(select(Book).where(Book.isbn == isbn)).scalar_one_or_none()

    def list_books(self, filters: BookFilter | None = None, page: int = 1, limit: int = 10) -> Page[Book]:
        """Return one page of books ordered by id ascending."""
        filters = filters or BookFilter()
        base_stmt = filters.apply(select(Book))

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = self.db.execute(count_stmt).scalar() or 0

        stmt = base_stmt.order_by(Book.id.asc()).offset(page_offset(page, limit)).limit(limit)
        books = list(self.db.execute(stmt).scalars().all())

        logger.debug(f"Listed {len(books)} of {total} books (page {page}, filters {filters})")
        return Page(items=books, total=total, page=page, limit=limit)

    def count_by_author(self, author_id: int) -> int:
        stmt = select(func.count(Book.id)).where(Book.author_id == author_id)
        return self.db.execute(stmt).scalar() or 0

    def has_open_borrowing(self, book_id: int) -> bool:
        stmt = select(func.count(Borrowing.id)).where(
            Borrowing.book_id == book_id,
            Borrowing.status.in_(OPEN_STATUSES),
        )
        return (self.db.execute(stmt).scalar() or 0) > 0

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------
    def create(self, data: BookCreate) -> Book:
        """
        Create a book.

        Raises:
            DuplicateKeyError: another book already has this ISBN
            NotFoundError: author_id does not reference an author
        """
        logger.debug(f"Creating book '{data.title}' (isbn {data.isbn})")
        self._ensure_isbn_free(data.isbn)
        self._ensure_author_exists(data.author_id)

        book = Book(**data.model_dump())
        self.db.add(book)
        self._commit_unique(data.isbn)
        self.db.refresh(book)

        logger.info(f"Book created: id={book.id} isbn={book.isbn}")
        self.events.record(Event(EventType.BOOK_CREATED, {"book_id": book.id, "title": book.title}))
        return book

    def update(self, book_id: int, data: BookUpdate) -> Book:
        """
        Apply a partial update.

        The ISBN is re-checked only when it actually changes. An explicit
        ``available`` is honoured as an admin override even when it
        disagrees with the loan records; that case is logged.
        """
        book = self.get(book_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        # Required columns cannot be cleared through a patch
        for field in ("title", "isbn", "author_id", "published_year", "available"):
            if field in changes and changes[field] is None:
                changes.pop(field)

        if "isbn" in changes and changes["isbn"] != book.isbn:
            self._ensure_isbn_free(changes["isbn"], exclude_id=book_id)
        if "author_id" in changes and changes["author_id"] != book.author_id:
            self._ensure_author_exists(changes["author_id"])

        if "available" in changes and changes["available"] != book.available:
            if self.has_open_borrowing(book_id):
                logger.warning(
                    f"Availability of book {book_id} overridden to {changes['available']} "
                    f"while a borrowing is still open"
                )

        for field, value in changes.items():
            setattr(book, field, value)

        self._commit_unique(changes.get("isbn", book.isbn))
        self.db.refresh(book)

        logger.info(f"Book updated: id={book_id} fields={sorted(changes)}")
        self.events.record(Event(EventType.BOOK_UPDATED, {"book_id": book_id, "changes": sorted(changes)}))
        return book

    def delete(self, book_id: int) -> None:
        """
        Delete a book.

        Raises:
            NotFoundError: no such book
            ConflictError: the book is currently on loan
        """
        book = self.get(book_id)
        if self.has_open_borrowing(book_id):
            logger.warning(f"Refused to delete book {book_id}: it is on loan")
            raise ConflictError(
                f"Book with id {book_id} is currently borrowed; "
                "return it before deleting"
            )

        title = book.title
        # Keep loan history, detached from the deleted book
        self.db.execute(
            update(Borrowing).where(Borrowing.book_id == book_id).values(book_id=None)
        )
        self.db.delete(book)
        self.db.commit()

        logger.info(f"Book deleted: id={book_id}")
        self.events.record(Event(EventType.BOOK_DELETED, {"book_id": book_id, "title": title}))

    def set_availability(self, book_id: int, available: bool, commit: bool = True) -> Book:
        """Flip the availability flag. Only the borrowing workflow calls this."""
        book = self.get(book_id)
        book.available = available
        if commit:
            self.db.commit()
        logger.debug(f"Book {book_id} availability set to {available}")
        return book

    def claim(self, book: Book) -> bool:
        """
        Atomically mark an available book as unavailable.

        The flag is tested and written in one UPDATE, so of two concurrent
        borrows only one matches a row. Returns False when the book was
        no longer available at the moment of the write. The caller owns
        the commit.
        """
        result = self.db.execute(
            update(Book)
            .where(Book.id == book.id, Book.available.is_(True))
            .values(available=False)
            .execution_options(synchronize_session=False)
        )
        self.db.expire(book, ["available"])
        return result.rowcount == 1

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _ensure_isbn_free(self, isbn: str, exclude_id: int | None = None) -> None:
        existing = self.find_by_isbn(isbn)
        if existing is not None and existing.id != exclude_id:
            logger.warning(f"Duplicate ISBN {isbn} (already used by book {existing.id})")
            raise DuplicateKeyError(f"A book with ISBN {isbn} already exists")

    def _ensure_author_exists(self, author_id: int) -> None:
        if self.db.get(Author, author_id) is None:
            raise NotFoundError.for_entity("Author", author_id)

    def _commit_unique(self, isbn: str) -> None:
        """Commit, turning a unique-constraint race into DuplicateKeyError."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Integrity error while saving book with ISBN {isbn}: {exc.orig}")
            raise DuplicateKeyError(f"A book with ISBN {isbn} already exists") from exc
