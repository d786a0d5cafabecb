"""
Book Model

The central catalog record.

The ``available`` flag is owned by the borrowing workflow: it is set at
creation (default True), flipped to False when a loan opens and back to
True when the loan is returned. Catalog edits may still override it.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_api.database import Base

if TYPE_CHECKING:
    from library_api.models.author import Author
    from library_api.models.borrowing import Borrowing


class Book(Base):
    """
    Book model representing books in the library.

    Table: books

    Fields:
    - title: Book title (required)
    - isbn: Normalized ISBN, unique across all books
    - author_id: The author who wrote the book
    - published_year: Year of publication
    - genre: Free-form genre label
    - available: Whether the book can be borrowed right now

    Indexes:
    - isbn: Unique index for duplicate detection
    - author_id, genre, available: Index for list filters

    Example:
        book = Book(
            title="1984",
            isbn="9780451524935",
            author_id=1,
            published_year=1949,
            genre="Dystopian",
        )
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    # The service checks uniqueness first to give a clear error; the
    # constraint catches concurrent inserts that slip past that check.
    isbn: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
        comment="Normalized International Standard Book Number"
    )

    author_id: Mapped[int] = mapped_column(
        ForeignKey("authors.id"),
        index=True,
        nullable=False,
        comment="Author of the book"
    )

    published_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Year the book was published"
    )

    genre: Mapped[str | None] = mapped_column(
        String(100),
        index=True,
        nullable=True,
        comment="Genre label"
    )

    available: Mapped[bool] = mapped_column(
        Boolean,
        index=True,
        nullable=False,
        default=True,
        server_default=true(),
        comment="Whether the book can currently be borrowed"
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

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    author: Mapped["Author"] = relationship(
        "Author",
        back_populates="books",
    )

    # passive_deletes: BookService detaches history rows itself before
    # deleting, the ORM must not try to load and null them again.
    borrowings: Mapped[list["Borrowing"]] = relationship(
        "Borrowing",
        back_populates="book",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', isbn='{self.isbn}')"
