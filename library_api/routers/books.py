"""
Books Router

CRUD endpoints for books, plus the loan history of a single book.

Handlers stay thin: they translate HTTP into BookService calls and the
service's results into response schemas. Domain errors raised by the
service (NotFoundError, DuplicateKeyError, ConflictError) are turned
into status codes by the exception handler registered in main.py.
"""

from fastapi import APIRouter, Request, status

from library_api.config import get_settings
from library_api.dependencies import (
    BookFilters,
    BookServiceDep,
    BorrowingServiceDep,
    Pagination,
)
from library_api.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    BorrowingResponse,
)
from library_api.services.rate_limiter import limiter

settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================
router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.get(
    "/",
    response_model=BookListResponse,
    summary="List all books",
    description="Get a paginated list of books, optionally filtered by author, genre and availability.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    books: BookServiceDep,
    pagination: Pagination,
    filters: BookFilters,
) -> BookListResponse:
    """
    List books ordered by id.

    Filters combine with AND:
    - author_id: exact match
    - genre: partial match, case-insensitive
    - available: true or false

    Examples:
        GET /api/v1/books/?genre=fiction
        GET /api/v1/books/?author_id=1&available=true&page=2&limit=5
    """
    result = books.list_books(filters.to_filter(), page=pagination.page, limit=pagination.limit)

    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
    description="Retrieve detailed information about a specific book.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    books: BookServiceDep,
) -> BookResponse:
    """Get a single book by its ID."""
    return BookResponse.model_validate(books.get(book_id))


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="Add a book to the catalog. The ISBN must be unique and the author must exist.",
    responses={400: {"description": "Duplicate ISBN"}},
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    books: BookServiceDep,
) -> BookResponse:
    """
    Create a new book.

    Raises:
        400: ISBN already used by another book
        404: author_id does not exist
    """
    return BookResponse.model_validate(books.create(book_data))


@router.patch(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update only the fields that are sent. Sending 'available' overrides the borrowing workflow.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    books: BookServiceDep,
) -> BookResponse:
    """
    Partially update a book.

    Raises:
        404: book (or the new author_id) not found
        400: new ISBN already used by another book
    """
    return BookResponse.model_validate(books.update(book_id, book_data))


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Remove a book from the catalog. Books that are currently on loan cannot be deleted.",
    responses={409: {"description": "Book is on loan"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    books: BookServiceDep,
) -> None:
    """
    Delete a book.

    Past loans of the book are kept with their book reference cleared.
    """
    books.delete(book_id)


@router.get(
    "/{book_id}/borrowings",
    response_model=list[BorrowingResponse],
    summary="Get loan history of a book",
    description="All borrowings of a book, oldest first.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_borrowings(
    request: Request,
    book_id: int,
    books: BookServiceDep,
    borrowings: BorrowingServiceDep,
) -> list[BorrowingResponse]:
    """Get every loan of a book, open or returned."""
    books.get(book_id)
    return [BorrowingResponse.model_validate(b) for b in borrowings.list_by_book(book_id)]
