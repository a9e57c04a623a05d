"""
Book upload and metadata: store an uploaded PDF and describe stored books.
"""

import logging
from typing import Optional

from . import settings
from .catalog import find_builtin_book
from .errors import ValidationError
from .extraction import extract_text
from .models import ExtractedBook, ProcessedBook
from .storage import BookStore, book_id_from_filename, validate_book_id

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def _preview(text: str) -> str:
    return text[:settings.PREVIEW_CHARS] + "..."


def ingest_upload(data: Optional[bytes], filename: Optional[str], content_type: Optional[str],
                  store: BookStore) -> ProcessedBook:
    """
    Validate, store and extract an uploaded PDF.

    Args:
        data: Raw uploaded bytes
        filename: Client-side file name, used as the title when the PDF has none
        content_type: MIME type reported by the client
        store: Book store to save into

    Returns:
        The processed book with a short content preview

    Raises:
        ValidationError: If the upload is missing, not a PDF or too large
        ExtractionError: If the PDF cannot be read
    """
    if not data:
        raise ValidationError("No file provided")

    if content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are supported")

    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(f"File size exceeds the limit ({settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)")

    book_id = store.put(data)
    extracted = extract_text(data)

    fallback_title = (filename or book_id).replace(".pdf", "")
    book = ProcessedBook(
        id=book_id,
        title=extracted.info.title or fallback_title,
        author=extracted.info.author or "Unknown Author",
        total_pages=extracted.num_pages,
        content=_preview(extracted.text),
    )
    logger.info(f"Processed upload '{filename}' as book {book_id} ({book.total_pages} pages)")
    return book


def describe_book(book_id: str, store: BookStore) -> ProcessedBook:
    """
    Describe a stored book, preferring built-in catalog metadata.

    Raises:
        ValidationError: If the id is missing or malformed
        NotFoundError: If the book is not stored
        ExtractionError: If the PDF cannot be read
    """
    validate_book_id(book_id)
    extracted = extract_text(store.get(book_id))

    builtin = find_builtin_book(book_id)
    if builtin is not None:
        title, author = builtin.title, builtin.author
    else:
        title = extracted.info.title or book_id
        author = extracted.info.author or "Unknown Author"

    return ProcessedBook(
        id=book_id,
        title=title,
        author=author,
        total_pages=extracted.num_pages,
        content=_preview(extracted.text),
    )


def extract_book_data(filename: Optional[str], store: BookStore) -> ExtractedBook:
    """Extract the full text of a stored file."""
    book_id = book_id_from_filename(filename)
    return extract_text(store.get(book_id))
