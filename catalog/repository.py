"""
In-memory repository owning all mutable catalog state.
"""

from typing import Dict, List, Optional, Set

import structlog

from catalog.locking import ReadWriteLock
from catalog.models import Book

logger = structlog.get_logger(__name__)


class InMemoryRepository:
    """
    Holds books, issued tokens and the id counter behind one readers-writer lock.

    Books are copied on the way in and on the way out, so nothing outside the
    repository holds a reference to guarded state.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._books: Dict[int, Book] = {}
        self._tokens: Set[str] = set()
        self._next_id = 1

    # Tokens

    def add_token(self, token: str) -> None:
        """Register a token; it stays valid for the life of the process."""
        with self._lock.write_locked():
            self._tokens.add(token)

    def validate_token(self, token: str) -> bool:
        """Check whether a token has been issued."""
        with self._lock.read_locked():
            return token in self._tokens

    # Books

    def create_book(self, candidate: Book) -> Book:
        """
        Store a new book under the next unused id.

        Args:
            candidate: Book fields; any id it carries is ignored

        Returns:
            Copy of the stored book including its assigned id
        """
        with self._lock.write_locked():
            stored = candidate.model_copy(update={"id": self._next_id})
            self._next_id += 1
            self._books[stored.id] = stored
        logger.debug("Book stored", book_id=stored.id)
        return stored.model_copy()

    def get_book(self, book_id: int) -> Optional[Book]:
        """Return a copy of the book, or None if the id is unknown."""
        with self._lock.read_locked():
            book = self._books.get(book_id)
            return book.model_copy() if book is not None else None

    def list_books(self) -> List[Book]:
        """Snapshot of every stored book, in no particular order."""
        with self._lock.read_locked():
            return [book.model_copy() for book in self._books.values()]

    def update_book(self, book_id: int, replacement: Book) -> bool:
        """
        Replace a stored book.

        Returns:
            True if the id existed and was replaced, False otherwise
        """
        with self._lock.write_locked():
            if book_id not in self._books:
                return False
            self._books[book_id] = replacement.model_copy(update={"id": book_id})
            return True

    def delete_book(self, book_id: int) -> bool:
        """Remove a book permanently. Returns False if it did not exist."""
        with self._lock.write_locked():
            if book_id not in self._books:
                return False
            del self._books[book_id]
            return True
