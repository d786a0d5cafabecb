"""
Author Store

CRUD for authors with one referential guard: an author that still has
books cannot be deleted. Callers must reassign or delete those books
first.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from library_api.exceptions import ConflictError, NotFoundError
from library_api.models import Author, Book
from library_api.schemas.author import AuthorCreate, AuthorUpdate
from library_api.services.books import BookFilter, BookService, Page
from library_api.services.events import Event, EventSink, EventType, get_event_sink
from library_api.utils.pagination import page_offset

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("first_name", "last_name")


class AuthorService:
    def __init__(self, db: Session, events: EventSink | None = None):
        self.db = db
        self.events = events or get_event_sink()

    def get(self, author_id: int) -> Author:
        author = self.db.get(Author, author_id)
        if author is None:
            logger.warning(f"Author not found: {author_id}")
            raise NotFoundError.for_entity("Author", author_id)
        return author

    def list_authors(self, page: int = 1, limit: int = 10) -> Page[Author]:
        total = self.db.execute(select(func.count(Author.id))).scalar() or 0
        stmt = select(Author).order_by(Author.id.asc()).offset(page_offset(page, limit)).limit(limit)
        authors = list(self.db.execute(stmt).scalars().all())
        return Page(items=authors, total=total, page=page, limit=limit)

    def list_books(self, author_id: int, page: int = 1, limit: int = 10) -> Page[Book]:
        """Books written by one author. Raises NotFoundError for an unknown author."""
        self.get(author_id)
        return BookService(self.db, self.events).list_books(
            BookFilter(author_id=author_id), page=page, limit=limit
        )

    def create(self, data: AuthorCreate) -> Author:
        author = Author(**data.model_dump())
        self.db.add(author)
        self.db.commit()
        self.db.refresh(author)

        logger.info(f"Author created: id={author.id} name='{author.full_name}'")
        self.events.record(
            Event(EventType.AUTHOR_CREATED, {"author_id": author.id, "full_name": author.full_name})
        )
        return author

    def update(self, author_id: int, data: AuthorUpdate) -> Author:
        author = self.get(author_id)
        changes = data.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                changes.pop(field)

        for field, value in changes.items():
            setattr(author, field, value)
        self.db.commit()
        self.db.refresh(author)

        logger.info(f"Author updated: id={author_id} fields={sorted(changes)}")
        self.events.record(
            Event(EventType.AUTHOR_UPDATED, {"author_id": author_id, "changes": sorted(changes)})
        )
        return author

    def delete(self, author_id: int) -> None:
        """
        Delete an author that has no books.

        Raises:
            NotFoundError: no such author
            ConflictError: books still reference the author; nothing is changed
        """
        author = self.get(author_id)
        book_count = BookService(self.db, self.events).count_by_author(author_id)
        if book_count > 0:
            logger.warning(f"Refused to delete author {author_id}: {book_count} book(s) reference it")
            raise ConflictError(
                f"Cannot delete author with id {author_id}: {book_count} book(s) "
                "still reference this author. Reassign or delete those books first."
            )

        full_name = author.full_name
        self.db.delete(author)
        self.db.commit()

        logger.info(f"Author deleted: id={author_id}")
        self.events.record(Event(EventType.AUTHOR_DELETED, {"author_id": author_id, "full_name": full_name}))
