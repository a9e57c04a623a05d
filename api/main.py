"""
FastAPI backend for the LitLens application.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from litlens import settings
from litlens.catalog import BUILTIN_BOOKS, prepare_builtin_book
from litlens.errors import LitLensError
from litlens.indexer import create_embeddings, finalize_book, save_to_vector_db
from litlens.ingest_book import describe_book, extract_book_data, ingest_upload
from litlens.models import (
    BuiltinBook,
    EmbeddingReport,
    FileRequest,
    FinalizeResult,
    ProcessedBook,
    QueryRequest,
    StructuredResponse,
)
from litlens.qa import answer_question
from litlens.storage import BookStore, FileBookStore, validate_book_id

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="LitLens API", description="Structured question answering over PDF books")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_book_store() -> BookStore:
    """Book store dependency; overridden in tests."""
    return FileBookStore()


@app.exception_handler(LitLensError)
async def litlens_error_handler(request: Request, exc: LitLensError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok")


@app.get("/builtin-books", response_model=List[BuiltinBook])
def list_builtin_books() -> List[BuiltinBook]:
    """List the bundled sample books."""
    return BUILTIN_BOOKS


@app.post("/upload-book", response_model=ProcessedBook)
def upload_book(file: Optional[UploadFile] = File(None), store: BookStore = Depends(get_book_store)) -> ProcessedBook:
    """
    Upload a PDF book, store it and extract its text.

    Returns:
        The processed book with a short content preview
    """
    if file is None:
        return ingest_upload(None, None, None, store)
    return ingest_upload(file.file.read(), file.filename, file.content_type, store)


@app.get("/books/{book_id}", response_model=ProcessedBook)
def get_book(book_id: str, store: BookStore = Depends(get_book_store)) -> ProcessedBook:
    """Get metadata and a content preview for a stored book."""
    return describe_book(book_id, store)


@app.get("/book-pdf/{book_id}")
def get_book_pdf(book_id: str, store: BookStore = Depends(get_book_store)) -> Response:
    """Serve the raw PDF of a stored book."""
    validate_book_id(book_id)
    return Response(
        content=store.get(book_id),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="{book_id}.pdf"',
            "Cache-Control": "public, max-age=3600",
        },
    )


@app.get("/prepare-builtin-book/{book_id}")
def prepare_builtin(book_id: str, store: BookStore = Depends(get_book_store)) -> Dict[str, Any]:
    """Copy a built-in book into the book store if needed."""
    book = prepare_builtin_book(book_id, store)
    return {
        "success": True,
        "message": f"Book {book.title} is ready for use",
        "bookId": book.id,
    }


@app.post("/extract-book-data")
def extract_data(request: FileRequest, store: BookStore = Depends(get_book_store)) -> Dict[str, Any]:
    """Extract the full text content of a stored PDF."""
    book = extract_book_data(request.filename, store)
    return {
        "success": True,
        "content": book.text,
        "numPages": book.num_pages,
        "info": {"Title": book.info.title, "Author": book.info.author},
    }


@app.post("/create-embeddings", response_model=EmbeddingReport)
def create_book_embeddings(request: FileRequest, store: BookStore = Depends(get_book_store)) -> EmbeddingReport:
    """Create embeddings for a stored book's chunks."""
    return create_embeddings(request.filename, store)


@app.post("/save-to-vector-db", response_model=EmbeddingReport)
def save_book_to_vector_db(request: FileRequest, store: BookStore = Depends(get_book_store)) -> EmbeddingReport:
    """Embed a stored book and save it to the vector index."""
    return save_to_vector_db(request.filename, store)


@app.post("/finalize-book", response_model=FinalizeResult)
def finalize(request: FileRequest, store: BookStore = Depends(get_book_store)) -> FinalizeResult:
    """Finish processing a book and report whether its vector index is usable."""
    return finalize_book(request.filename, store)


@app.post("/query-book", response_model=StructuredResponse, response_model_exclude_none=True)
def query_book(request: QueryRequest, store: BookStore = Depends(get_book_store)):
    """
    Answer a question about a stored book.

    Args:
        request: Question and book id

    Returns:
        A structured response tagged by responseType
    """
    try:
        return answer_question(request.question, request.book_id, store)
    except LitLensError:
        raise
    except Exception as e:
        logger.error(f"Error processing book query: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process query"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
