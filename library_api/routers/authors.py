"""
Authors Router

CRUD endpoints for authors.
Follows the same patterns as the books router.
"""

from fastapi import APIRouter, Request, status

from library_api.config import get_settings
from library_api.dependencies import AuthorServiceDep, Pagination
from library_api.schemas import (
    AuthorCreate,
    AuthorListResponse,
    AuthorResponse,
    AuthorUpdate,
    BookListResponse,
    BookResponse,
)
from library_api.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/authors",
    tags=["Authors"],
    responses={
        404: {"description": "Author not found"},
    },
)


@router.get(
    "/",
    response_model=AuthorListResponse,
    summary="List all authors",
    description="Get a paginated list of authors ordered by id.",
)
def list_authors(authors: AuthorServiceDep, pagination: Pagination) -> AuthorListResponse:
    """List all authors."""
    result = authors.list_authors(page=pagination.page, limit=pagination.limit)
    return AuthorListResponse(
        items=[AuthorResponse.model_validate(a) for a in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Get an author by ID",
    description="Retrieve detailed information about a specific author.",
)
def get_author(
    author_id: int,
    authors: AuthorServiceDep,
) -> AuthorResponse:
    """Get a single author by ID."""
    return AuthorResponse.model_validate(authors.get(author_id))


@router.get(
    "/{author_id}/books",
    response_model=BookListResponse,
    summary="Get books by author",
    description="Get all books written by a specific author.",
)
def get_author_books(
    author_id: int,
    authors: AuthorServiceDep,
    pagination: Pagination,
) -> BookListResponse:
    """Get all books by a specific author with pagination."""
    result = authors.list_books(author_id, page=pagination.page, limit=pagination.limit)
    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.post(
    "/",
    response_model=AuthorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new author",
    description="Create a new author in the system.",
)
@limiter.limit(settings.rate_limit_write)
def create_author(
    request: Request,
    author_data: AuthorCreate,
    authors: AuthorServiceDep,
) -> AuthorResponse:
    """Create a new author."""
    return AuthorResponse.model_validate(authors.create(author_data))


@router.patch(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Update an author",
    description="Update only the fields that are sent.",
)
@limiter.limit(settings.rate_limit_write)
def update_author(
    request: Request,
    author_id: int,
    author_data: AuthorUpdate,
    authors: AuthorServiceDep,
) -> AuthorResponse:
    """Update an existing author."""
    return AuthorResponse.model_validate(authors.update(author_id, author_data))


@router.delete(
    "/{author_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an author",
    description="Delete an author. Authors that still have books cannot be deleted.",
    responses={409: {"description": "Author still has books"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_author(
    request: Request,
    author_id: int,
    authors: AuthorServiceDep,
) -> None:
    """Delete an author with no books."""
    authors.delete(author_id)
