"""
Pydantic models for the LitLens application.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ResponseCategory(str, Enum):
    """The shape a structured answer takes."""
    TEXT = "text"
    CHARACTER_PROFILE = "character_profile"
    TIMELINE = "timeline"
    THEME_ANALYSIS = "theme_analysis"
    QUOTE_ANALYSIS = "quote_analysis"
    COMPARISON = "comparison"


# Payload models

class Connection(BaseModel):
    name: str
    relationship: str


class CharacterData(BaseModel):
    """Profile of a single character."""

    name: str = Field(description="Character name")
    description: str = Field(description="Description of the character")
    traits: List[str] = Field(default_factory=list, description="Key character traits")
    connections: List[Connection] = Field(default_factory=list, description="Related characters")
    color: Optional[str] = Field(default=None, description="Colour theme suggested by the completion service")


class ThemeExample(BaseModel):
    text: str
    reference: str


class ThemeData(BaseModel):
    """A theme, symbol or motif with supporting examples."""

    title: str
    description: str
    examples: List[ThemeExample] = Field(default_factory=list)
    type: Literal["theme", "symbol", "motif"] = "theme"


class QuoteData(BaseModel):
    text: str
    speaker: str
    chapter: str
    analysis: str
    themes: List[str] = Field(default_factory=list)


class ComparedElement(BaseModel):
    name: str
    description: str


class ComparisonData(BaseModel):
    element1: ComparedElement
    element2: ComparedElement
    similarities: List[str] = Field(default_factory=list)
    differences: List[str] = Field(default_factory=list)


class TimelineEvent(BaseModel):
    id: str
    year: str
    title: str
    description: str
    color: str = "blue"

    @field_validator("id", "year", mode="before")
    @classmethod
    def _coerce_to_str(cls, value):
        # The completion service often answers with bare numbers
        if isinstance(value, (int, float)):
            return str(value)
        return value


# Structured responses, one model per category

class _TaggedResponse(BaseModel):
    class Config:
        populate_by_name = True
        extra = "forbid"


class TextResponse(_TaggedResponse):
    response_type: Literal["text"] = Field(default="text", alias="responseType")
    text: str


class CharacterProfileResponse(_TaggedResponse):
    response_type: Literal["character_profile"] = Field(default="character_profile", alias="responseType")
    character: Optional[CharacterData] = None
    characters: Optional[List[CharacterData]] = None

    @model_validator(mode="after")
    def _exactly_one_payload(self):
        if (self.character is None) == (self.characters is None):
            raise ValueError("character_profile carries exactly one of 'character' or 'characters'")
        return self


class TimelineResponse(_TaggedResponse):
    response_type: Literal["timeline"] = Field(default="timeline", alias="responseType")
    timeline: List[TimelineEvent]


class ThemeAnalysisResponse(_TaggedResponse):
    response_type: Literal["theme_analysis"] = Field(default="theme_analysis", alias="responseType")
    themes: List[ThemeData]


class QuoteAnalysisResponse(_TaggedResponse):
    response_type: Literal["quote_analysis"] = Field(default="quote_analysis", alias="responseType")
    quote: QuoteData


class ComparisonResponse(_TaggedResponse):
    response_type: Literal["comparison"] = Field(default="comparison", alias="responseType")
    comparison: ComparisonData


StructuredResponse = Annotated[
    Union[
        TextResponse,
        CharacterProfileResponse,
        TimelineResponse,
        ThemeAnalysisResponse,
        QuoteAnalysisResponse,
        ComparisonResponse,
    ],
    Field(discriminator="response_type"),
]


# Book models

class PdfInfo(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None


class ExtractedBook(BaseModel):
    """Text and metadata pulled out of a PDF."""

    text: str
    num_pages: int
    info: PdfInfo = Field(default_factory=PdfInfo)


class ProcessedBook(BaseModel):
    """A stored book as reported to clients."""

    id: str
    title: str
    author: str = "Unknown Author"
    total_pages: int = Field(alias="totalPages")
    is_processed: bool = Field(default=True, alias="isProcessed")
    upload_date: datetime = Field(default_factory=datetime.now, alias="uploadDate")
    content: Optional[str] = None

    class Config:
        populate_by_name = True


class BuiltinBook(BaseModel):
    """Metadata for a bundled sample book."""

    id: str
    title: str
    author: str
    code: str
    code_color: str = Field(alias="codeColor")
    short_description: Optional[str] = Field(default=None, alias="shortDescription")
    filename: str = ""
    is_placeholder: bool = Field(default=False, alias="isPlaceholder")

    class Config:
        populate_by_name = True


class EmbeddingReport(BaseModel):
    success: bool = True
    num_chunks: int = Field(alias="numChunks")
    message: str

    class Config:
        populate_by_name = True


class FinalizeResult(BaseModel):
    success: bool = True
    id: str
    title: str
    is_processed: bool = Field(default=True, alias="isProcessed")
    upload_date: datetime = Field(default_factory=datetime.now, alias="uploadDate")
    message: str
    vector_store_available: bool = Field(alias="vectorStoreAvailable")

    class Config:
        populate_by_name = True


# Request models

class QueryRequest(BaseModel):
    """Request model for asking questions about a book."""

    question: Optional[str] = None
    book_id: Optional[str] = Field(default=None, alias="bookId")

    class Config:
        populate_by_name = True


class FileRequest(BaseModel):
    """Request model for the processing endpoints that address a stored file."""

    filename: Optional[str] = None
