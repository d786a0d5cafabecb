"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

WHY Dependency Injection?
=========================
1. Reusability: Write once, use in many routes
2. Testing: Override the clock, event sink or database in tests
3. Separation of Concerns: Routes translate HTTP, services hold the rules

Dependencies provided here:
- DbSession: per-request database session
- Pagination: page/limit query parameters
- BookFilters: author_id/genre/available query parameters
- ClockDep / EventSinkDep: injectable time source and event sink
- BookServiceDep / AuthorServiceDep / BorrowingServiceDep: services
  wired with the above
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from library_api.config import get_settings
from library_api.database import get_db
from library_api.services.authors import AuthorService
from library_api.services.books import BookFilter, BookService
from library_api.services.borrowings import BorrowingService
from library_api.services.events import EventSink, get_event_sink
from library_api.utils.clock import Clock, utcnow

settings = get_settings()

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - limit: How many items per page
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        limit: int = Query(
            default=settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description=f"Number of items per page (max {settings.max_page_size})",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.limit = limit


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book Filters
# =============================================================================
class BookFilterParams:
    """
    Filter parameters for the book list.

    All filters are optional and combine with AND:
        GET /api/v1/books/?author_id=1&available=true
    """

    def __init__(
        self,
        author_id: int | None = Query(
            default=None,
            ge=1,
            description="Only books by this author",
        ),
        genre: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Genre (partial match, case-insensitive)",
            examples=["fiction"],
        ),
        available: bool | None = Query(
            default=None,
            description="Only available (true) or borrowed (false) books",
        ),
    ) -> None:
        self.author_id = author_id
        self.genre = genre
        self.available = available

    def to_filter(self) -> BookFilter:
        return BookFilter(
            author_id=self.author_id,
            genre=self.genre,
            available=self.available,
        )


BookFilters = Annotated[BookFilterParams, Depends()]


# =============================================================================
# Clock and Event Sink
# =============================================================================
def get_clock() -> Clock:
    """Time source for the borrowing workflow. Tests override this."""
    return utcnow


ClockDep = Annotated[Clock, Depends(get_clock)]
EventSinkDep = Annotated[EventSink, Depends(get_event_sink)]


# =============================================================================
# Services
# =============================================================================
def get_book_service(db: DbSession, events: EventSinkDep) -> BookService:
    return BookService(db, events)


def get_author_service(db: DbSession, events: EventSinkDep) -> AuthorService:
    return AuthorService(db, events)


def get_borrowing_service(
    db: DbSession,
    clock: ClockDep,
    events: EventSinkDep,
) -> BorrowingService:
    return BorrowingService(
        db,
        clock=clock,
        events=events,
        default_borrow_days=settings.default_borrow_days,
    )


BookServiceDep = Annotated[BookService, Depends(get_book_service)]
AuthorServiceDep = Annotated[AuthorService, Depends(get_author_service)]
BorrowingServiceDep = Annotated[BorrowingService, Depends(get_borrowing_service)]
