#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample catalog data and a few loans for
development.

USAGE:
    # From the project root with the virtualenv activated
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears existing data
3. Creates sample authors and books
4. Creates loans directly through the ORM: one returned, one open and
   one whose due date has already passed
5. Runs one overdue sweep so the late loan shows up as OVERDUE
"""

import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from library_api.config import get_settings
from library_api.database import SessionLocal, create_tables
from library_api.models import Author, Book, Borrowing, BorrowingStatus
from library_api.services.scheduler import run_overdue_sweep


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Borrowing))
    db.execute(delete(Book))
    db.execute(delete(Author))
    db.commit()
    print("Data cleared.")


def create_authors(db: Session) -> dict[str, Author]:
    """Create sample authors, keyed by last name."""
    print("Creating authors...")
    authors_data = [
        {
            "first_name": "George",
            "last_name": "Orwell",
            "date_of_birth": date(1903, 6, 25),
            "nationality": "British",
            "biography": "English novelist and essayist, journalist and critic. "
                         "Best known for '1984' and 'Animal Farm'.",
        },
        {
            "first_name": "Jane",
            "last_name": "Austen",
            "date_of_birth": date(1775, 12, 16),
            "nationality": "British",
            "biography": "English novelist known for her six major novels.",
        },
        {
            "first_name": "Agatha",
            "last_name": "Christie",
            "date_of_birth": date(1890, 9, 15),
            "nationality": "British",
        },
        {
            "first_name": "Isaac",
            "last_name": "Asimov",
            "date_of_birth": date(1920, 1, 2),
            "nationality": "American",
            "biography": "Writer and professor of biochemistry, known for science fiction.",
        },
    ]

    authors = {}
    for data in authors_data:
        author = Author(**data)
        db.add(author)
        authors[data["last_name"]] = author

    db.commit()
    for author in authors.values():
        db.refresh(author)

    print(f"Created {len(authors)} authors.")
    return authors


def create_books(db: Session, authors: dict[str, Author]) -> dict[str, Book]:
    """Create sample books, keyed by ISBN."""
    print("Creating books...")
    books_data = [
        ("1984", "9780451524935", "Orwell", 1949, "Dystopian"),
        ("Animal Farm", "9780451526342", "Orwell", 1945, "Political Satire"),
        ("Pride and Prejudice", "9780141439518", "Austen", 1813, "Romance"),
        ("Emma", "9780141439587", "Austen", 1815, "Romance"),
        ("Murder on the Orient Express", "9780062693662", "Christie", 1934, "Mystery"),
        ("Foundation", "9780553293357", "Asimov", 1951, "Science Fiction"),
        ("I, Robot", "9780553382563", "Asimov", 1950, "Science Fiction"),
    ]

    books = {}
    for title, isbn, last_name, year, genre in books_data:
        book = Book(
            title=title,
            isbn=isbn,
            author_id=authors[last_name].id,
            published_year=year,
            genre=genre,
        )
        db.add(book)
        books[isbn] = book

    db.commit()
    for book in books.values():
        db.refresh(book)

    print(f"Created {len(books)} books.")
    return books


def create_borrowings(db: Session, books: dict[str, Book]) -> list[Borrowing]:
    """
    Create sample loans.

    Written through the ORM rather than BorrowingService so the dates can
    lie in the past. Books with an open loan are marked unavailable here
    to keep the catalog consistent.
    """
    print("Creating borrowings...")
    today = date.today()
    loan_days = get_settings().default_borrow_days

    returned_start = today - timedelta(days=30)
    late_start = today - timedelta(days=loan_days + 5)
    loans = [
        Borrowing(
            book_id=books["9780141439518"].id,
            borrower_name="Alice Martin",
            borrower_email="alice.martin@example.com",
            borrowed_date=returned_start,
            due_date=returned_start + timedelta(days=loan_days),
            returned_date=returned_start + timedelta(days=10),
            status=BorrowingStatus.RETURNED,
        ),
        Borrowing(
            book_id=books["9780451524935"].id,
            borrower_name="Bob Chen",
            borrower_email="bob.chen@example.com",
            borrowed_date=today,
            due_date=today + timedelta(days=loan_days),
            status=BorrowingStatus.BORROWED,
        ),
        Borrowing(
            book_id=books["9780553293357"].id,
            borrower_name="Carla Diaz",
            borrower_email="carla.diaz@example.com",
            borrowed_date=late_start,
            due_date=late_start + timedelta(days=loan_days),
            status=BorrowingStatus.BORROWED,
        ),
    ]

    books_by_id = {book.id: book for book in books.values()}
    for loan in loans:
        db.add(loan)
        if loan.is_open:
            books_by_id[loan.book_id].available = False

    db.commit()
    print(f"Created {len(loans)} borrowings.")
    return loans


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    # Create tables if they don't exist
    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        authors = create_authors(db)
        books = create_books(db, authors)
        borrowings = create_borrowings(db, books)
    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    overdue = run_overdue_sweep()

    print("=" * 60)
    print("Database seeding completed successfully!")
    print("=" * 60)
    print("\nSummary:")
    print(f"  - Authors: {len(authors)}")
    print(f"  - Books: {len(books)}")
    print(f"  - Borrowings: {len(borrowings)} ({overdue} marked overdue)")
    print(f"\nYou can now access the API at http://localhost:{get_settings().port}")
    print(f"API documentation at http://localhost:{get_settings().port}/docs")


if __name__ == "__main__":
    seed_database()
