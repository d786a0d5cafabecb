"""
Domain Exceptions

Errors raised by the service layer. They carry a machine-readable
``kind`` and a human-readable message, and know nothing about HTTP:
main.py maps each kind to a status code.

Taxonomy:
- NotFoundError: a referenced book, author or borrowing does not exist
- BadRequestError: a business rule rejected the operation
- DuplicateKeyError: a unique value (ISBN) is already taken
- ConflictError: the operation clashes with existing state
  (author still has books, book still on loan, lost availability race)
"""


class LibraryError(Exception):
    """Base class for every error the core raises to its callers."""

    kind = "library_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NotFoundError(LibraryError):
    kind = "not_found"

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> "NotFoundError":
        return cls(f"{entity} with id {entity_id} not found")


class BadRequestError(LibraryError):
    kind = "bad_request"


class DuplicateKeyError(BadRequestError):
    kind = "duplicate_key"


class ConflictError(LibraryError):
    kind = "conflict"
