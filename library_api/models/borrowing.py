"""
Borrowing Model

One loan of one book to one borrower.

Lifecycle:
    BORROWED -> OVERDUE -> RETURNED
    BORROWED -> RETURNED

OVERDUE is written only by the overdue sweep; RETURNED only by the
return operation. A book has at most one open (BORROWED or OVERDUE)
borrowing at a time.

Dates are stored without time of day so that due-date arithmetic is
exact in whole days.
"""

from datetime import date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_api.database import Base

if TYPE_CHECKING:
    from library_api.models.book import Book


class BorrowingStatus(StrEnum):
    """States of a loan."""

    BORROWED = "BORROWED"
    OVERDUE = "OVERDUE"
    RETURNED = "RETURNED"


OPEN_STATUSES = (BorrowingStatus.BORROWED, BorrowingStatus.OVERDUE)


class Borrowing(Base):
    """
    Borrowing model.

    Table: borrowings

    Fields:
    - book_id: Borrowed book (NULL once the book is deleted from the catalog)
    - borrower_name: Display name of the borrower
    - borrower_email: Borrower identity used for duplicate-loan detection
    - borrowed_date / due_date / returned_date: Loan dates
    - status: BORROWED, OVERDUE or RETURNED
    """

    __tablename__ = "borrowings"

    id: Mapped[int] = mapped_column(primary_key=True)

    book_id: Mapped[int | None] = mapped_column(
        ForeignKey("books.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
        comment="Borrowed book"
    )

    borrower_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Name of the borrower"
    )

    borrower_email: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Email identifying the borrower"
    )

    borrowed_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Day the loan started"
    )

    due_date: Mapped[date] = mapped_column(
        Date,
        index=True,
        nullable=False,
        comment="Last day before the loan is overdue"
    )

    returned_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Day the book came back"
    )

    status: Mapped[BorrowingStatus] = mapped_column(
        Enum(BorrowingStatus, name="borrowing_status"),
        index=True,
        nullable=False,
        default=BorrowingStatus.BORROWED,
        comment="Loan state"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    book: Mapped["Book | None"] = relationship(
        "Book",
        back_populates="borrowings",
    )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def __repr__(self) -> str:
        return (
            f"Borrowing(id={self.id}, book_id={self.book_id}, "
            f"status={self.status.value})"
        )
