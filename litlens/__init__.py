"""
LitLens: ask questions about a book and get structured answers.

This package extracts text from uploaded PDF books and answers natural-language
questions with character profiles, timelines, theme and quote analyses,
comparisons or plain text. Answers come from an OpenAI completion model when a
key is configured, and from local keyword heuristics otherwise.
"""

from .qa import answer_question
from .router import route_question, classify_question, extract_potential_character_names
from .relevance import find_relevant_passage, extract_relevant_context
from .models import ResponseCategory
from .storage import BookStore, FileBookStore, InMemoryBookStore

__version__ = "0.1.0"
