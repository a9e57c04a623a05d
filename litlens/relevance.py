"""
Keyword-based relevance scoring over raw book text.

Two entry points share one scoring function:

- ``find_relevant_passage`` picks the single best paragraph, counting each
  question keyword at most once (substring match).
- ``extract_relevant_context`` groups paragraphs into ~1000 character chunks
  and ranks them by the total number of whole-word keyword occurrences.
"""

import re
from enum import Enum
from typing import List

from . import settings

STOP_WORDS = frozenset({"what", "when", "where", "which", "about", "there"})
MIN_KEYWORD_LENGTH = 4
MIN_SCORED_PARAGRAPH = 30
SUBSTANTIAL_PARAGRAPH = 100
PASSAGE_MAX_CHARS = 300

_PUNCTUATION = re.compile(r"[^\w\s]")
_BLANK_LINE = re.compile(r"\n\s*\n")


class ScoringStrategy(Enum):
    """How keyword hits in a block of text are counted."""
    DISTINCT_SUBSTRING = "distinct_substring"  # one point per keyword present anywhere
    OCCURRENCE_COUNT = "occurrence_count"  # one point per whole-word occurrence


def extract_keywords(question: str) -> List[str]:
    """Lowercase, strip punctuation and drop short words and stop words."""
    words = _PUNCTUATION.sub("", question.lower()).split()
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS]


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines."""
    return _BLANK_LINE.split(text)


def score_text(keywords: List[str], text: str, strategy: ScoringStrategy) -> int:
    """Score a block of text against question keywords."""
    lower_text = text.lower()
    if strategy is ScoringStrategy.DISTINCT_SUBSTRING:
        return sum(1 for word in set(keywords) if word in lower_text)
    return sum(
        len(re.findall(rf"\b{re.escape(word)}\b", lower_text))
        for word in keywords
    )


def _truncate(passage: str, limit: int = PASSAGE_MAX_CHARS) -> str:
    if len(passage) > limit:
        return passage[:limit] + "..."
    return passage


def find_relevant_passage(question: str, book_text: str) -> str:
    """
    Find the paragraph of the book most related to the question.

    Args:
        question: The user's question
        book_text: Full extracted text of the book

    Returns:
        The best paragraph, truncated to 300 characters ("..." appended when cut).
        Empty string for an empty book.
    """
    keywords = extract_keywords(question)
    paragraphs = split_paragraphs(book_text)

    best_paragraph = ""
    highest_score = 0

    for paragraph in paragraphs:
        if len(paragraph) < MIN_SCORED_PARAGRAPH:
            continue

        score = score_text(keywords, paragraph, ScoringStrategy.DISTINCT_SUBSTRING)
        if score > highest_score:
            highest_score = score
            best_paragraph = paragraph

    # No keyword hit anywhere: fall back to the first substantial paragraph
    if highest_score == 0:
        best_paragraph = next(
            (p for p in paragraphs if len(p) > SUBSTANTIAL_PARAGRAPH),
            paragraphs[0],
        )

    return _truncate(best_paragraph)


def split_into_chunks(text: str, chunk_size: int) -> List[str]:
    """
    Group whole paragraphs into chunks of roughly ``chunk_size`` characters.

    A paragraph is never split; one longer than ``chunk_size`` becomes a chunk
    of its own.
    """
    chunks = []
    current_chunk = ""

    for paragraph in split_paragraphs(text):
        if current_chunk and len(current_chunk) + len(paragraph) > chunk_size:
            chunks.append(current_chunk)
            current_chunk = paragraph
        else:
            current_chunk += ("\n\n" if current_chunk else "") + paragraph

    if current_chunk:
        chunks.append(current_chunk)

    return chunks


def extract_relevant_context(question: str, book_text: str,
                             chunk_size: int = settings.CONTEXT_CHUNK_SIZE) -> str:
    """
    Collect the chunks of the book that mention the question's keywords most often.

    Args:
        question: The user's question
        book_text: Full extracted text of the book
        chunk_size: Target chunk size in characters

    Returns:
        The top chunks joined by blank lines
    """
    keywords = extract_keywords(question)
    chunks = split_into_chunks(book_text, chunk_size)

    scored_chunks = [
        (score_text(keywords, chunk, ScoringStrategy.OCCURRENCE_COUNT), chunk)
        for chunk in chunks
    ]
    # sorted() is stable, so equally scored chunks keep book order
    scored_chunks = sorted(scored_chunks, key=lambda item: item[0], reverse=True)

    top_chunks = [chunk for _, chunk in scored_chunks[:settings.CONTEXT_TOP_CHUNKS]]
    return "\n\n".join(top_chunks)
