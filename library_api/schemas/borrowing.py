"""
Borrowing Pydantic Schemas

Clients can only open a loan (BorrowingCreate) and read loans back.
Status, dates and the returned flag are always computed server-side.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from library_api.models.borrowing import BorrowingStatus


class BorrowingCreate(BaseModel):
    """
    Schema for borrowing a book.

    Example request body:
    {
        "book_id": 1,
        "borrower_name": "John Doe",
        "borrower_email": "john.doe@example.com",
        "borrow_days": 14
    }
    """

    book_id: int = Field(..., ge=1, description="ID of the book to borrow", examples=[1])

    borrower_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Name of the borrower",
        examples=["John Doe"],
    )

    borrower_email: EmailStr = Field(
        ...,
        description="Email of the borrower",
        examples=["john.doe@example.com"],
    )

    borrow_days: int | None = Field(
        default=None,
        ge=1,
        description="Loan period in days (server default is 14)",
        examples=[14],
    )

    @field_validator("borrower_name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Borrower name cannot be empty or whitespace")
        return v.strip()


class BorrowingResponse(BaseModel):
    """Schema for borrowing responses."""

    id: int
    book_id: int | None = Field(..., description="Borrowed book (null once the book was deleted)")
    borrower_name: str
    borrower_email: str
    borrowed_date: date
    due_date: date
    returned_date: date | None = None
    status: BorrowingStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 1,
                "borrower_name": "John Doe",
                "borrower_email": "john.doe@example.com",
                "borrowed_date": "2024-01-15",
                "due_date": "2024-01-29",
                "returned_date": None,
                "status": "BORROWED",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BorrowingReturnResponse(BorrowingResponse):
    """
    Response for a completed return.

    Adds whether the loan ran past its due date and by how many days.
    """

    was_overdue: bool = Field(..., description="Returned after the due date")
    days_late: int = Field(..., ge=0, description="Whole days past the due date")
