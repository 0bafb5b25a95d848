"""
Catalog service: validation, filtering, pagination and partial updates.
"""

import re
from typing import List, Optional, Union

import structlog

from catalog.errors import NotFound, ValidationFailed
from catalog.models import Book
from catalog.repository import InMemoryRepository

logger = structlog.get_logger(__name__)

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def parse_int(value: Union[str, int, None]) -> Optional[int]:
    """
    Parse a decimal integer with an optional sign.

    Surrounding whitespace, underscores and other forms ``int()`` would
    tolerate are rejected.
    """
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str) or not _INTEGER_PATTERN.match(value):
        return None
    return int(value)


def parse_positive_int(value: Union[str, int, None]) -> Optional[int]:
    """Parse an integer that must be greater than zero."""
    parsed = parse_int(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed


def paginate(books: List[Book], page: int, limit: int) -> List[Book]:
    """Return the 1-based ``page`` of ``limit`` items."""
    start = (page - 1) * limit
    if start >= len(books):
        return []
    return books[start:min(start + limit, len(books))]


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class CatalogService:
    """Book operations layered on the repository."""

    def __init__(self, repository: InMemoryRepository):
        self.repository = repository

    def list_books(
        self,
        author: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None
    ) -> List[Book]:
        """
        List books with optional author filter and pagination.

        Args:
            author: Case-insensitive exact author match; empty means no filter
            page: 1-based page number, as received
            limit: Page size, as received

        Returns:
            Books ordered by id. Pagination is applied only when both page and
            limit parse as positive integers; otherwise the full list is returned.
        """
        snapshot = self.repository.list_books()

        if author:
            wanted = author.lower()
            snapshot = [book for book in snapshot if book.author.lower() == wanted]

        result = sorted(snapshot, key=lambda book: book.id)

        if page is not None and limit is not None:
            page_number = parse_positive_int(page)
            page_size = parse_positive_int(limit)
            if page_number is not None and page_size is not None:
                result = paginate(result, page_number, page_size)

        return result

    def create_book(self, title: Optional[str], author: Optional[str], year: Optional[int] = None) -> Book:
        """
        Validate and store a new book.

        Raises:
            ValidationFailed: If title or author is blank
        """
        if not _has_text(title):
            raise ValidationFailed("title is required")
        if not _has_text(author):
            raise ValidationFailed("author is required")

        book = self.repository.create_book(Book(title=title, author=author, year=year))
        logger.info("Book created", book_id=book.id)
        return book

    def get_book(self, book_id: Union[str, int]) -> Book:
        """
        Fetch a book by id.

        A malformed id is reported the same way as an unknown one.

        Raises:
            NotFound: If the id does not parse or no such book exists
        """
        parsed = parse_int(book_id)
        if parsed is None:
            raise NotFound()
        book = self.repository.get_book(parsed)
        if book is None:
            raise NotFound()
        return book

    def update_book(
        self,
        book_id: Union[str, int],
        title: Optional[str] = None,
        author: Optional[str] = None,
        year: Optional[int] = None
    ) -> Book:
        """
        Merge the given fields into an existing book.

        Title and author are applied when non-blank, year when non-zero;
        everything else keeps its stored value.

        Raises:
            NotFound: If the book does not exist
        """
        existing = self.get_book(book_id)

        changes = {}
        if _has_text(title):
            changes["title"] = title
        if _has_text(author):
            changes["author"] = author
        if year:
            changes["year"] = year
        merged = existing.model_copy(update=changes)

        if not self.repository.update_book(merged.id, merged):
            # Deleted between the read and the write.
            raise NotFound()

        logger.info("Book updated", book_id=merged.id, fields=sorted(changes))
        return merged

    def delete_book(self, book_id: Union[str, int]) -> None:
        """
        Delete a book.

        Raises:
            NotFound: If the id does not parse or no such book exists
        """
        parsed = parse_int(book_id)
        if parsed is None or not self.repository.delete_book(parsed):
            raise NotFound()
        logger.info("Book deleted", book_id=parsed)
