"""
Question-answering entry point: load a stored book and route the question.
"""

import logging
from typing import Optional

from .errors import ValidationError
from .extraction import extract_text
from .models import StructuredResponse
from .router import route_question
from .storage import BookStore, validate_book_id

logger = logging.getLogger(__name__)


def answer_question(question: Optional[str], book_id: Optional[str], store: BookStore) -> StructuredResponse:
    """
    Answer a question about a stored book.

    Args:
        question: The user's question
        book_id: Identifier of the book in the store
        store: Book store holding the PDF

    Returns:
        A structured response tagged with its category

    Raises:
        ValidationError: If the question or book id is missing
        NotFoundError: If the book is not stored
        ExtractionError: If the PDF cannot be read
    """
    if not question or not question.strip():
        raise ValidationError("Question is required")
    validate_book_id(book_id)

    book = extract_text(store.get(book_id))
    logger.info(f"Answering question for book {book_id} ({book.num_pages} pages)")
    return route_question(question, book.text)
