"""
Author Pydantic Schemas

These schemas define the shape of data for Author-related API operations.

Pydantic v2 Features Used:
- model_config: Configure models (from_attributes for ORM objects)
- Field(): Define constraints and metadata
- field_validator: Validate and transform field values
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_required(v: str) -> str:
    if not v.strip():
        raise ValueError("Value cannot be empty or whitespace")
    return v.strip()


class AuthorBase(BaseModel):
    """
    Base schema with shared author fields.

    Contains fields common to create and response schemas.
    """

    first_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author's first name",
        examples=["F. Scott", "Jane"],
    )

    last_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author's last name",
        examples=["Fitzgerald", "Austen"],
    )

    date_of_birth: date | None = Field(
        default=None,
        description="Date of birth",
        examples=["1896-09-24"],
    )

    nationality: str | None = Field(
        default=None,
        max_length=100,
        description="Nationality",
        examples=["American", "British"],
    )

    biography: str | None = Field(
        default=None,
        max_length=5000,
        description="Author biography",
    )

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        """Reject whitespace-only names and strip the rest."""
        return _strip_required(v)


class AuthorCreate(AuthorBase):
    """
    Schema for creating a new author.

    Example request body:
    {
        "first_name": "George",
        "last_name": "Orwell",
        "nationality": "British"
    }
    """
    pass


class AuthorUpdate(BaseModel):
    """
    Schema for updating an existing author.

    All fields are optional for PATCH-style updates.
    """

    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    nationality: str | None = Field(default=None, max_length=100)
    biography: str | None = Field(default=None, max_length=5000)

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_not_be_empty(cls, v: str | None) -> str | None:
        """Validate names if provided."""
        return _strip_required(v) if v is not None else v


class AuthorResponse(AuthorBase):
    """
    Schema for author responses (what the API returns).

    from_attributes=True lets us build this directly from the
    SQLAlchemy Author instance.
    """

    id: int = Field(..., description="Unique identifier", examples=[1, 42])
    full_name: str = Field(..., description="First and last name joined")
    created_at: datetime = Field(..., description="When the author was created")
    updated_at: datetime = Field(..., description="When the author was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "first_name": "George",
                "last_name": "Orwell",
                "full_name": "George Orwell",
                "date_of_birth": "1903-06-25",
                "nationality": "British",
                "biography": "English novelist and essayist.",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class AuthorListResponse(BaseModel):
    """Paginated list of authors."""

    items: list[AuthorResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)
