"""
SQLAlchemy Models Package

This package contains all database models for the Library Catalog API.

Model Relationships:
- Author -> Book: One-to-Many (an author writes many books)
- Book -> Borrowing: One-to-Many (a book is lent many times, at most
                     one loan open at a time)

Import all models here to:
1. Make them available as: from library_api.models import Book, Author
2. Ensure Alembic discovers them for migrations
"""

from library_api.models.author import Author
from library_api.models.book import Book
from library_api.models.borrowing import OPEN_STATUSES, Borrowing, BorrowingStatus

__all__ = [
    "Author",
    "Book",
    "Borrowing",
    "BorrowingStatus",
    "OPEN_STATUSES",
]
