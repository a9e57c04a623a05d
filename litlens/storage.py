"""
Book storage behind a small content-addressable interface.
"""

import hashlib
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional

from . import settings
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_BOOK_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def content_id(data: bytes) -> str:
    """Derive a book id from the book's bytes."""
    return hashlib.sha256(data).hexdigest()[:16]


def book_id_from_filename(filename: Optional[str]) -> str:
    """Map a stored file name such as ``<id>.pdf`` back to its book id."""
    if not filename:
        raise ValidationError("Filename is required")
    book_id = filename[:-4] if filename.lower().endswith(".pdf") else filename
    return validate_book_id(book_id)


def validate_book_id(book_id: Optional[str]) -> str:
    if not book_id:
        raise ValidationError("Book ID is required")
    if not _BOOK_ID.match(book_id):
        raise ValidationError(f"Invalid book ID: {book_id}")
    return book_id


class BookStore(ABC):
    """Stores raw book files addressed by id."""

    @abstractmethod
    def put(self, data: bytes, book_id: Optional[str] = None) -> str:
        """
        Store a book.

        Args:
            data: Raw PDF bytes
            book_id: Explicit id; derived from the content when omitted

        Returns:
            The id the book is stored under
        """

    @abstractmethod
    def get(self, book_id: str) -> bytes:
        """
        Load a book.

        Raises:
            NotFoundError: If no book is stored under the id
        """

    @abstractmethod
    def exists(self, book_id: str) -> bool:
        """Whether a book is stored under the id."""


class InMemoryBookStore(BookStore):
    """Dictionary-backed store."""

    def __init__(self, books: Optional[Dict[str, bytes]] = None):
        self._books: Dict[str, bytes] = dict(books or {})

    def put(self, data: bytes, book_id: Optional[str] = None) -> str:
        book_id = validate_book_id(book_id) if book_id else content_id(data)
        self._books[book_id] = data
        return book_id

    def get(self, book_id: str) -> bytes:
        try:
            return self._books[book_id]
        except KeyError:
            raise NotFoundError("Book not found") from None

    def exists(self, book_id: str) -> bool:
        return book_id in self._books


class FileBookStore(BookStore):
    """
    Filesystem store. New books are written to the uploads directory as
    ``<id>.pdf``; reads look in the uploads directory, then each search directory.
    """

    def __init__(self, uploads_dir: Path = None, search_dirs: Iterable[Path] = None):
        self.uploads_dir = Path(uploads_dir or settings.UPLOADS_DIR)
        if search_dirs is None:
            search_dirs = [settings.SAMPLES_DIR]
        self.search_dirs = [self.uploads_dir] + [Path(d) for d in search_dirs]

    def _find(self, book_id: str) -> Optional[Path]:
        validate_book_id(book_id)
        for directory in self.search_dirs:
            path = directory / f"{book_id}.pdf"
            if path.exists():
                return path
        return None

    def put(self, data: bytes, book_id: Optional[str] = None) -> str:
        book_id = validate_book_id(book_id) if book_id else content_id(data)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        path = self.uploads_dir / f"{book_id}.pdf"
        path.write_bytes(data)
        logger.info(f"PDF saved to: {path}")
        return book_id

    def get(self, book_id: str) -> bytes:
        path = self._find(book_id)
        if path is None:
            logger.warning(f"PDF not found for book ID: {book_id}. Checked: {[str(d) for d in self.search_dirs]}")
            raise NotFoundError("Book not found")
        return path.read_bytes()

    def exists(self, book_id: str) -> bool:
        return self._find(book_id) is not None
