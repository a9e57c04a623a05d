"""
Built-in sample books shipped with the application.
"""

import logging
from typing import List, Optional

from . import settings
from .errors import NotFoundError, ValidationError
from .models import BuiltinBook
from .storage import BookStore

logger = logging.getLogger(__name__)

BUILTIN_BOOKS: List[BuiltinBook] = [
    BuiltinBook(
        id="the-great-gatsby",
        title="The Great Gatsby",
        author="F. Scott Fitzgerald",
        code="TGG",
        code_color="purple",
        short_description="A classic novel about wealth, love, and the American Dream",
        filename="the-great-gatsby.pdf",
    ),
    BuiltinBook(
        id="the-law-of-attraction",
        title="The Law of Attraction",
        author="Esther & Jerry Hicks",
        code="LOA",
        code_color="blue",
        short_description="The basics of the powerful Law of Attraction",
        filename="The Law of Attraction.pdf",
    ),
    BuiltinBook(
        id="percy-jackson",
        title="Percy Jackson & The Olympians",
        author="Rick Riordan",
        code="PJO",
        code_color="green",
        short_description="A young boy discovers he is the son of a Greek god",
        filename="Percy Jackson.pdf",
    ),
    BuiltinBook(
        id="coming-soon",
        title="Coming Soon",
        author="More books on the way",
        code="CS",
        code_color="amber",
        short_description="New sample books will be added soon",
        filename="",
        is_placeholder=True,
    ),
]


def find_builtin_book(book_id: str) -> Optional[BuiltinBook]:
    return next((book for book in BUILTIN_BOOKS if book.id == book_id), None)


def prepare_builtin_book(book_id: str, store: BookStore) -> BuiltinBook:
    """
    Make a built-in book available in the store under its own id.

    Args:
        book_id: Built-in book identifier
        store: Store to copy the book into

    Returns:
        The prepared book's catalog entry

    Raises:
        NotFoundError: If the id is not a built-in book or its file is missing
        ValidationError: If the entry is a placeholder
    """
    if not book_id:
        raise ValidationError("Book ID is required")

    book = find_builtin_book(book_id)
    if book is None:
        raise NotFoundError("Book not found in built-in books")

    if book.is_placeholder or not book.filename:
        raise ValidationError("Cannot prepare placeholder book")

    if store.exists(book_id):
        return book

    source_path = settings.BUILTIN_BOOKS_DIR / book.filename
    if not source_path.exists():
        raise NotFoundError(f"Built-in book file not found: {book.filename}")

    store.put(source_path.read_bytes(), book_id=book_id)
    logger.info(f"Copied built-in book: {book.title} into the book store")
    return book
