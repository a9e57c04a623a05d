"""
Completion-service path: classify a question and generate the structured answer with an LLM.

Failures are never raised to the router. ``generate_book_response`` returns a
``CompletionOutcome`` holding either the response or the error that stopped it,
and the router decides what to do with a failure.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import openai
import pydantic
import tiktoken

from . import settings
from .errors import ExternalServiceError, ParseError
from .models import (
    CharacterData,
    CharacterProfileResponse,
    ComparisonData,
    ComparisonResponse,
    QuoteAnalysisResponse,
    QuoteData,
    ResponseCategory,
    StructuredResponse,
    TextResponse,
    ThemeAnalysisResponse,
    ThemeData,
    TimelineEvent,
    TimelineResponse,
)
from .relevance import extract_relevant_context

logger = logging.getLogger(__name__)

# Initialize OpenAI client
openai.api_key = settings.OPENAI_API_KEY
openai.max_retries = settings.COMPLETION_MAX_RETRIES

CLASSIFY_PROMPT = """You are an AI that analyzes questions about books and determines the most appropriate response format.

Possible response types:
- text: General information or explanations
- character_profile: Questions about characters, personalities, or relationships
- timeline: Questions about events, sequences, or character journeys
- theme_analysis: Questions about themes, symbols, or motifs
- quote_analysis: Questions about specific quotes or passages
- comparison: Questions comparing characters, themes, or other elements

Respond with ONLY ONE of these types based on the question, with no explanation."""

PROMPTS: Dict[ResponseCategory, str] = {
    ResponseCategory.TEXT: (
        "You are a helpful literary assistant. Answer the following question about a book using the "
        "provided context. Format your response as plain text with paragraphs as needed."
    ),
    ResponseCategory.CHARACTER_PROFILE: """You are a literary character analyst. Create a character profile based on the question and context provided. Format your response as a JSON object with these fields:
- name: The character's name
- description: A detailed description of the character
- traits: An array of 3-5 key character traits
- connections: An array of objects with 'name' and 'relationship' fields
- color: Suggest a color theme (purple, blue, green, amber, or rose)""",
    ResponseCategory.TIMELINE: """You are a literary events analyst. Create a timeline of events based on the question and context provided. Format your response as a JSON object with a 'timeline' array of events, each with:
- id: A unique identifier
- year: The year or time period (if known)
- title: A short title for the event
- description: A description of what happened
- color: Suggest a color theme (blue, purple, green, amber, or rose)""",
    ResponseCategory.THEME_ANALYSIS: """You are a literary theme analyst. Analyze the themes or symbols based on the question and context provided. Format your response as a JSON object with a 'themes' array of theme objects, each with:
- title: The name of the theme or symbol
- description: A detailed analysis of the theme or symbol
- examples: An array of objects with 'text' (the example from the book) and 'reference' (where it appears)
- type: Either 'theme', 'symbol', or 'motif'""",
    ResponseCategory.QUOTE_ANALYSIS: """You are a literary quote analyst. Analyze the quote or find a relevant quote based on the question and context provided. Format your response as a JSON object with:
- text: The exact quote from the book
- speaker: Who said it (if known)
- chapter: Where it appears (if known)
- analysis: Your analysis of the quote's meaning and significance
- themes: An array of themes related to the quote""",
    ResponseCategory.COMPARISON: """You are a literary comparison expert. Compare the elements mentioned in the question using the provided context. Format your response as a JSON object with:
- element1: Object with 'name' and 'description'
- element2: Object with 'name' and 'description'
- similarities: Array of similarities between the elements
- differences: Array of differences between the elements""",
}


@dataclass
class CompletionOutcome:
    """Result of the completion path: a response, or the error that prevented one."""

    response: Optional[StructuredResponse] = None
    error: Optional[ExternalServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None


def is_available() -> bool:
    """The completion path is used only when a credential is configured."""
    return bool(settings.OPENAI_API_KEY)


def _chat(messages: list, max_tokens: int, **kwargs: Any) -> str:
    """Run one chat completion, turning every failure into an ExternalServiceError."""
    try:
        response = openai.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=messages,
            max_tokens=max_tokens,
            timeout=settings.COMPLETION_TIMEOUT,
            **kwargs
        )
        return response.choices[0].message.content or ""
    except Exception as e:
        raise ExternalServiceError(f"Completion request failed: {e}") from e


def determine_response_type(question: str) -> ResponseCategory:
    """
    Ask the completion service which response shape fits the question.

    Args:
        question: The user's question

    Returns:
        The category named by the service, or TEXT when the label is not recognised

    Raises:
        ExternalServiceError: If the completion call fails
    """
    label = _chat(
        [
            {"role": "system", "content": CLASSIFY_PROMPT},
            {"role": "user", "content": question},
        ],
        max_tokens=settings.CLASSIFY_MAX_TOKENS,
    ).strip().lower()

    try:
        category = ResponseCategory(label)
    except ValueError:
        logger.warning(f"Invalid response type '{label}', defaulting to text")
        return ResponseCategory.TEXT

    logger.info(f"Completion classification for '{question[:50]}': {category.value}")
    return category


def trim_context(context: str, max_tokens: int = settings.MAX_CONTEXT_TOKENS) -> str:
    """
    Trim context to a token budget.

    Raises:
        ExternalServiceError: If the tokenizer cannot be loaded
    """
    # Every token covers at least one UTF-8 byte and a character is at most four bytes
    if len(context) * 4 <= max_tokens:
        return context
    try:
        tokenizer = tiktoken.get_encoding("cl100k_base")
        tokens = tokenizer.encode(context)
    except Exception as e:
        raise ExternalServiceError(f"Tokenizer unavailable: {e}") from e
    if len(tokens) <= max_tokens:
        return context
    return tokenizer.decode(tokens[:max_tokens])


def _unwrap(payload: Any, *keys: str) -> Any:
    """Strip a single-key wrapper object such as {"timeline": [...]}."""
    if isinstance(payload, dict):
        for key in keys:
            if key in payload and len(payload) == 1:
                return payload[key]
    return payload


def parse_structured_content(category: ResponseCategory, content: str) -> StructuredResponse:
    """
    Parse the JSON returned by the completion service into the category's response model.

    Raises:
        ParseError: If the content is not JSON or does not fit the category's shape
    """
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"Completion content is not valid JSON: {e}") from e

    try:
        if category == ResponseCategory.CHARACTER_PROFILE:
            payload = _unwrap(payload, "character", "characters")
            if isinstance(payload, list):
                return CharacterProfileResponse(
                    characters=[CharacterData.model_validate(item) for item in payload]
                )
            return CharacterProfileResponse(character=CharacterData.model_validate(payload))

        if category == ResponseCategory.TIMELINE:
            payload = _unwrap(payload, "timeline", "events")
            if not isinstance(payload, list):
                raise ParseError("Timeline content is not a list of events")
            return TimelineResponse(timeline=[TimelineEvent.model_validate(item) for item in payload])

        if category == ResponseCategory.THEME_ANALYSIS:
            payload = _unwrap(payload, "themes")
            items = payload if isinstance(payload, list) else [payload]
            return ThemeAnalysisResponse(themes=[ThemeData.model_validate(item) for item in items])

        if category == ResponseCategory.QUOTE_ANALYSIS:
            return QuoteAnalysisResponse(quote=QuoteData.model_validate(_unwrap(payload, "quote")))

        if category == ResponseCategory.COMPARISON:
            return ComparisonResponse(comparison=ComparisonData.model_validate(_unwrap(payload, "comparison")))

    except pydantic.ValidationError as e:
        raise ParseError(f"Completion content does not match {category.value}: {e}") from e

    return TextResponse(text=content)


def generate_structured_content(question: str, context: str,
                                category: ResponseCategory) -> StructuredResponse:
    """
    Generate the response for a category from the question and book context.

    Malformed structured content is answered as plain text carrying the raw output.

    Raises:
        ExternalServiceError: If the completion call fails
    """
    is_text = category == ResponseCategory.TEXT
    content = _chat(
        [
            {"role": "system", "content": PROMPTS[category]},
            {"role": "user", "content": f"Question: {question}\n\nBook context: {context}"},
        ],
        max_tokens=settings.GENERATE_MAX_TOKENS,
        response_format={"type": "text" if is_text else "json_object"},
    )

    if is_text:
        return TextResponse(text=content)

    try:
        return parse_structured_content(category, content)
    except ParseError as e:
        logger.warning(f"Error parsing structured content: {e}")
        return TextResponse(text=content)


def generate_book_response(question: str, book_text: str) -> CompletionOutcome:
    """
    Answer a question about a book through the completion service.

    Args:
        question: The user's question
        book_text: Full extracted text of the book

    Returns:
        An outcome carrying the structured response, or the error that stopped it
    """
    try:
        category = determine_response_type(question)
        context = trim_context(extract_relevant_context(question, book_text))
        return CompletionOutcome(response=generate_structured_content(question, context, category))
    except ExternalServiceError as e:
        logger.error(f"Error generating book response: {e}")
        return CompletionOutcome(error=e)
    except Exception as e:
        logger.exception(f"Unexpected error generating book response: {e}")
        error = ExternalServiceError(f"Unexpected completion failure: {e}")
        error.__cause__ = e
        return CompletionOutcome(error=error)
