"""
Question routing: decide which structured shape answers a question and build it.

When the completion service is configured the whole answer is delegated to it;
if that path reports a failure the local heuristics answer instead. The local
builders emit demo filler around one real piece of evidence from the book.
"""

import logging
import re
from typing import Callable, Dict, List

from . import completion
from .models import (
    CharacterData,
    CharacterProfileResponse,
    ComparedElement,
    ComparisonData,
    ComparisonResponse,
    Connection,
    QuoteAnalysisResponse,
    QuoteData,
    ResponseCategory,
    StructuredResponse,
    TextResponse,
    ThemeAnalysisResponse,
    ThemeData,
    ThemeExample,
    TimelineEvent,
    TimelineResponse,
)
from .relevance import find_relevant_passage

logger = logging.getLogger(__name__)

MAX_CHARACTER_NAMES = 5

_COMPARE_PATTERN = re.compile(r"compare\s+([a-z\s]+)\s+and\s+([a-z\s]+)", re.IGNORECASE)
_NON_WORD = re.compile(r"[^\w]")


def classify_question(question: str) -> ResponseCategory:
    """
    Classify a question with ordered keyword checks; the first match wins.

    Args:
        question: The user's question

    Returns:
        The response category for the question
    """
    q = question.lower()

    if "character" in q or "who is" in q or ("about" in q and ("person" in q or "people" in q)):
        return ResponseCategory.CHARACTER_PROFILE
    if "theme" in q or "symbol" in q or "motif" in q:
        return ResponseCategory.THEME_ANALYSIS
    if "quote" in q or "passage" in q or "line" in q:
        return ResponseCategory.QUOTE_ANALYSIS
    if ("compare" in q or "contrast" in q or "difference" in q) and " and " in q:
        return ResponseCategory.COMPARISON
    if "timeline" in q or "sequence" in q or "events" in q or "what happens" in q:
        return ResponseCategory.TIMELINE
    return ResponseCategory.TEXT


def extract_potential_character_names(book_text: str) -> List[str]:
    """
    Guess character names from capitalised words that do not start a sentence.

    This is a frequency heuristic, not named-entity recognition.

    Args:
        book_text: Full extracted text of the book

    Returns:
        Up to five candidate names, most frequent first
    """
    words = book_text.split()
    candidates: Dict[str, None] = {}

    for previous, raw_word in zip(words, words[1:]):
        word = _NON_WORD.sub("", raw_word)
        if (len(word) > 1
                and word[0] == word[0].upper()
                and word[0] != word[0].lower()
                and not previous.endswith(".")):
            candidates[word] = None

    name_counts = [
        (name, len(re.findall(rf"\b{re.escape(name)}\b", book_text)))
        for name in candidates
    ]
    name_counts.sort(key=lambda item: item[1], reverse=True)

    return [name for name, _ in name_counts[:MAX_CHARACTER_NAMES]]


# Local builders

def build_text_response(question: str, book_text: str) -> TextResponse:
    passage = find_relevant_passage(question, book_text)
    return TextResponse(
        text=(
            f'Based on the book content, I found this relevant information: "{passage}"\n\n'
            f"In a complete implementation, this would use an AI model to provide a "
            f'comprehensive answer to your question: "{question}"'
        )
    )


def build_character_response(question: str, book_text: str) -> CharacterProfileResponse:
    names = extract_potential_character_names(book_text)

    def name_at(index: int, default: str) -> str:
        return names[index] if len(names) > index else default

    return CharacterProfileResponse(
        character=CharacterData(
            name=name_at(0, "the protagonist"),
            description=(
                "This character appears frequently in the book. In a real implementation, "
                "an AI would analyze the text to provide a detailed character description and analysis."
            ),
            traits=["Trait 1", "Trait 2", "Trait 3"],
            connections=[
                Connection(name=name_at(1, "Character 2"), relationship="Related character"),
                Connection(name=name_at(2, "Character 3"), relationship="Related character"),
            ],
        )
    )


def build_theme_response(question: str, book_text: str) -> ThemeAnalysisResponse:
    return ThemeAnalysisResponse(
        themes=[
            ThemeData(
                title="Major Theme",
                description=(
                    "This theme appears to be significant in the book based on keyword analysis. "
                    "In a real implementation, an AI would identify and analyze the actual themes."
                ),
                examples=[
                    ThemeExample(text=find_relevant_passage(question, book_text), reference="From the book")
                ],
                type="theme",
            )
        ]
    )


def build_quote_response(question: str, book_text: str) -> QuoteAnalysisResponse:
    return QuoteAnalysisResponse(
        quote=QuoteData(
            text=find_relevant_passage(question, book_text),
            speaker="Character or Narrator",
            chapter="Unknown Chapter",
            analysis=(
                "This passage appears relevant to your query. In a real implementation, an AI would "
                "provide detailed analysis of this quote, its context, and significance."
            ),
            themes=["Theme 1", "Theme 2"],
        )
    )


def build_comparison_response(question: str, book_text: str) -> ComparisonResponse:
    match = _COMPARE_PATTERN.search(question)
    element1 = match.group(1).strip() if match else "Element 1"
    element2 = match.group(2).strip() if match else "Element 2"

    return ComparisonResponse(
        comparison=ComparisonData(
            element1=ComparedElement(
                name=element1,
                description=f"In a real implementation, an AI would analyze {element1} based on the book content.",
            ),
            element2=ComparedElement(
                name=element2,
                description=f"In a real implementation, an AI would analyze {element2} based on the book content.",
            ),
            similarities=[
                "In a real implementation, AI would identify actual similarities",
                "Based on content analysis",
            ],
            differences=[
                "In a real implementation, AI would identify actual differences",
                "Based on content analysis",
            ],
        )
    )


def build_timeline_response(question: str, book_text: str) -> TimelineResponse:
    return TimelineResponse(
        timeline=[
            TimelineEvent(
                id="1", year="1", title="Beginning", color="blue",
                description="In a real implementation, AI would extract actual chronological events from the book.",
            ),
            TimelineEvent(
                id="2", year="2", title="Middle Event", color="purple",
                description=find_relevant_passage(question, book_text),
            ),
            TimelineEvent(
                id="3", year="3", title="Conclusion", color="amber",
                description="In a real implementation, AI would identify the resolution or ending events.",
            ),
        ]
    )


BUILDERS: Dict[ResponseCategory, Callable[[str, str], StructuredResponse]] = {
    ResponseCategory.TEXT: build_text_response,
    ResponseCategory.CHARACTER_PROFILE: build_character_response,
    ResponseCategory.THEME_ANALYSIS: build_theme_response,
    ResponseCategory.QUOTE_ANALYSIS: build_quote_response,
    ResponseCategory.COMPARISON: build_comparison_response,
    ResponseCategory.TIMELINE: build_timeline_response,
}


def build_response(category: ResponseCategory, question: str, book_text: str) -> StructuredResponse:
    """Build the local heuristic response for a category."""
    return BUILDERS[category](question, book_text)


def answer_locally(question: str, book_text: str) -> StructuredResponse:
    """Classify and answer a question using only the local heuristics."""
    category = classify_question(question)
    logger.info(f"Local classification for '{question[:50]}': {category.value}")
    return build_response(category, question, book_text)


def route_question(question: str, book_text: str) -> StructuredResponse:
    """
    Answer a question about a book with a structured response.

    Uses the completion service when a credential is configured; any failure
    there is logged and the question is answered entirely by local heuristics.

    Args:
        question: The user's question
        book_text: Full extracted text of the book

    Returns:
        A structured response tagged with its category
    """
    if completion.is_available():
        logger.info("Using completion service for book query")
        outcome = completion.generate_book_response(question, book_text)
        if outcome.ok:
            return outcome.response
        logger.warning(f"Completion service failed ({outcome.error}), falling back to local heuristics")
    else:
        logger.info("No completion credential configured, using local heuristics")

    return answer_locally(question, book_text)
