"""
PDF text extraction.
"""

import io
import logging

from pypdf import PdfReader

from .errors import ExtractionError
from .models import ExtractedBook, PdfInfo

logger = logging.getLogger(__name__)


def extract_text(data: bytes) -> ExtractedBook:
    """
    Extract text and metadata from a PDF buffer.

    Pages are joined by blank lines so page breaks count as paragraph breaks.

    Args:
        data: Raw PDF bytes

    Returns:
        Extracted text, page count and title/author metadata

    Raises:
        ExtractionError: If the buffer cannot be read as a PDF
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
        metadata = reader.metadata
        info = PdfInfo(
            title=(metadata.title or None) if metadata else None,
            author=(metadata.author or None) if metadata else None,
        )
    except Exception as e:
        logger.error(f"Error extracting PDF content: {e}")
        raise ExtractionError(f"Failed to process PDF content: {e}") from e

    return ExtractedBook(text="\n\n".join(pages), num_pages=len(pages), info=info)
