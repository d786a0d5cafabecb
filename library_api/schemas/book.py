"""
Book Pydantic Schemas

Handles:
- ISBN normalization
- Publication year bounds
- Pagination for list responses

The ``available`` flag may be supplied on create (defaults to True) and
on update as an explicit admin override; otherwise it is maintained by
the borrowing workflow.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_PUBLISHED_YEAR = 1000
MAX_PUBLISHED_YEAR = 2100


def normalize_isbn(v: str) -> str:
    """
    Normalize an ISBN for storage and comparison.

    Hyphens and whitespace are dropped and a trailing check character
    'x' is upper-cased, so "0-06-112008-x" and "006112008X" are the same
    book. No checksum or length rule is enforced: the catalog also
    holds local shelf codes in this field.
    """
    cleaned = re.sub(r"[-\s]", "", v).upper()
    if not cleaned:
        raise ValueError("ISBN cannot be empty")
    return cleaned


class BookBase(BaseModel):
    """Base schema with shared book fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["The Great Gatsby", "1984"],
    )

    isbn: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="ISBN (hyphens are ignored)",
        examples=["978-0-7432-7356-5"],
    )

    author_id: int = Field(
        ...,
        ge=1,
        description="ID of the author",
        examples=[1],
    )

    published_year: int = Field(
        ...,
        ge=MIN_PUBLISHED_YEAR,
        le=MAX_PUBLISHED_YEAR,
        description="Year the book was published",
        examples=[1925],
    )

    genre: str | None = Field(
        default=None,
        max_length=100,
        description="Genre label",
        examples=["Fiction"],
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        return normalize_isbn(v)

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        """Validate and normalize title."""
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "The Great Gatsby",
        "isbn": "978-0-7432-7356-5",
        "author_id": 1,
        "published_year": 1925,
        "genre": "Fiction"
    }
    """

    available: bool = Field(
        default=True,
        description="Whether the book is available for borrowing",
    )


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional for PATCH-style updates. Sending
    ``available`` overrides the flag the borrowing workflow maintains.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    isbn: str | None = Field(default=None, min_length=1, max_length=20)
    author_id: int | None = Field(default=None, ge=1)
    published_year: int | None = Field(
        default=None,
        ge=MIN_PUBLISHED_YEAR,
        le=MAX_PUBLISHED_YEAR,
    )
    genre: str | None = Field(default=None, max_length=100)
    available: bool | None = None

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        """Normalize ISBN if provided."""
        return normalize_isbn(v) if v is not None else v

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str | None) -> str | None:
        """Validate title if provided."""
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip() if v else v


class BookResponse(BookBase):
    """Schema for book responses."""

    id: int = Field(..., description="Unique identifier")
    available: bool = Field(..., description="Whether the book can be borrowed now")
    created_at: datetime = Field(..., description="When the book was created")
    updated_at: datetime = Field(..., description="When the book was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Great Gatsby",
                "isbn": "9780743273565",
                "author_id": 1,
                "published_year": 1925,
                "genre": "Fiction",
                "available": True,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    - total: Total number of books matching the filters
    - page: Current page number
    - limit: Number of items per page
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of matching books")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 100,
                "page": 1,
                "limit": 10,
                "pages": 10,
            }
        },
    )
