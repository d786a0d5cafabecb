"""
Borrowings Router

Endpoints for the loan workflow: borrow a book, look loans up, return
a book. Status transitions are never set by clients; BORROWED comes
from borrowing, OVERDUE from the background sweep and RETURNED from the
return endpoint.
"""

from fastapi import APIRouter, Query, Request, status

from library_api.config import get_settings
from library_api.dependencies import BorrowingServiceDep
from library_api.models import BorrowingStatus
from library_api.schemas import (
    BorrowingCreate,
    BorrowingResponse,
    BorrowingReturnResponse,
)
from library_api.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/borrowings",
    tags=["Borrowings"],
    responses={
        404: {"description": "Borrowing or book not found"},
    },
)


@router.post(
    "/",
    response_model=BorrowingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Borrow a book",
    description="Open a loan for an available book. The due date is borrow_days (default 14) after today.",
    responses={
        400: {"description": "Book not available, or borrower already has it"},
        409: {"description": "Another borrow claimed the book at the same time"},
    },
)
@limiter.limit(settings.rate_limit_write)
def borrow_book(
    request: Request,
    borrowing_data: BorrowingCreate,
    borrowings: BorrowingServiceDep,
) -> BorrowingResponse:
    """
    Borrow a book.

    The book is marked unavailable in the same transaction that records
    the loan.
    """
    borrowing = borrowings.borrow(
        book_id=borrowing_data.book_id,
        borrower_name=borrowing_data.borrower_name,
        borrower_email=borrowing_data.borrower_email,
        borrow_days=borrowing_data.borrow_days,
    )
    return BorrowingResponse.model_validate(borrowing)


@router.get(
    "/",
    response_model=list[BorrowingResponse],
    summary="List borrowings",
    description="List loans, optionally filtered by book, borrower email and status.",
)
@limiter.limit(settings.rate_limit_default)
def list_borrowings(
    request: Request,
    borrowings: BorrowingServiceDep,
    book_id: int | None = Query(default=None, ge=1, description="Only loans of this book"),
    borrower_email: str | None = Query(
        default=None,
        min_length=3,
        max_length=255,
        description="Only loans of this borrower (case-insensitive)",
    ),
    status_filter: BorrowingStatus | None = Query(
        default=None,
        alias="status",
        description="Only loans in this status",
    ),
) -> list[BorrowingResponse]:
    """
    List borrowings ordered by id.

    Examples:
        GET /api/v1/borrowings/?status=OVERDUE
        GET /api/v1/borrowings/?borrower_email=john.doe@example.com
    """
    results = borrowings.list_borrowings(
        book_id=book_id,
        borrower_email=borrower_email,
        status=status_filter,
    )
    return [BorrowingResponse.model_validate(b) for b in results]


@router.get(
    "/{borrowing_id}",
    response_model=BorrowingResponse,
    summary="Get a borrowing by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_borrowing(
    request: Request,
    borrowing_id: int,
    borrowings: BorrowingServiceDep,
) -> BorrowingResponse:
    """Get a single loan by its ID."""
    return BorrowingResponse.model_validate(borrowings.get(borrowing_id))


@router.patch(
    "/{borrowing_id}/return",
    response_model=BorrowingReturnResponse,
    summary="Return a book",
    description="Close a loan and make the book available again.",
    responses={400: {"description": "Borrowing already returned"}},
)
@limiter.limit(settings.rate_limit_write)
def return_book(
    request: Request,
    borrowing_id: int,
    borrowings: BorrowingServiceDep,
) -> BorrowingReturnResponse:
    """
    Return a borrowed book.

    The response tells whether the book came back after its due date
    and by how many days.
    """
    result = borrowings.return_book(borrowing_id)
    response = BorrowingResponse.model_validate(result.borrowing)
    return BorrowingReturnResponse(
        **response.model_dump(),
        was_overdue=result.was_overdue,
        days_late=result.days_late,
    )
