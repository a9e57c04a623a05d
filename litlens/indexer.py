"""
Embedding and vector storage for uploaded books, using FAISS and DuckDB.

Errors on this write path are surfaced to the caller; there is no local
substitute for persisted embeddings.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import duckdb
import faiss
import numpy as np
import openai

from . import settings
from .errors import ExternalServiceError, ExtractionError, NotFoundError
from .extraction import extract_text
from .models import EmbeddingReport, FinalizeResult
from .splitters import Document, HeadingAwareTextSplitter
from .storage import BookStore, book_id_from_filename

logger = logging.getLogger(__name__)

# Initialize OpenAI client
openai.api_key = settings.OPENAI_API_KEY

CHECK_QUERY = "What is this book about?"


def _require_credential() -> None:
    if not settings.OPENAI_API_KEY:
        raise ExternalServiceError("OpenAI API key is not configured")


def embed_texts(texts: List[str]) -> List[List[float]]:
    """
    Get embeddings for texts, in batches.

    Raises:
        ExternalServiceError: If no credential is configured or an embedding call fails
    """
    _require_credential()
    embeddings: List[List[float]] = []

    for i in range(0, len(texts), settings.BATCH_SIZE):
        batch = texts[i:i + settings.BATCH_SIZE]
        try:
            response = openai.embeddings.create(model=settings.EMBED_MODEL, input=batch)
        except Exception as e:
            raise ExternalServiceError(f"Embedding request failed: {e}") from e
        embeddings.extend(item.embedding for item in response.data)

    return embeddings


class BookIndex:
    """FAISS index and DuckDB chunk table for a single book."""

    def __init__(self, book_id: str, index_root: Optional[Path] = None):
        self.book_id = book_id
        self.index_dir = Path(index_root or settings.INDEX_ROOT) / book_id
        self.db_path = self.index_dir / "litlens.db"
        self.index_path = self.index_dir / "litlens.faiss"

    def exists(self) -> bool:
        return self.index_path.exists() and self.db_path.exists()

    def replace(self, documents: List[Document], embeddings: List[List[float]]) -> None:
        """Rewrite the book's collection with new chunks and their embeddings."""
        self.index_dir.mkdir(parents=True, exist_ok=True)

        vectors = np.array(embeddings, dtype=np.float32)
        faiss.normalize_L2(vectors)
        index = faiss.IndexFlatIP(vectors.shape[1])
        index.add(vectors)

        conn = duckdb.connect(str(self.db_path))
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    chunk_id      INTEGER PRIMARY KEY,
                    book_id       TEXT,
                    heading       TEXT,
                    heading_level INTEGER,
                    chunk_num     INTEGER,
                    text          TEXT
                )
            """)
            conn.execute("DELETE FROM chunks")
            # chunk_id is the vector's position in the FAISS index
            for chunk_id, doc in enumerate(documents):
                conn.execute("""
                    INSERT INTO chunks (chunk_id, book_id, heading, heading_level, chunk_num, text)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (chunk_id, self.book_id, doc.metadata.get('heading'),
                      doc.metadata.get('heading_level'), doc.metadata.get('chunk_num'), doc.text))
        finally:
            conn.close()

        faiss.write_index(index, str(self.index_path))
        logger.info(f"Saved {index.ntotal} vectors for book {self.book_id}")

    def similar_chunks(self, query: str, k: int = 5) -> List[Dict[str, Any]]:
        """
        Find the chunks most similar to a query.

        Raises:
            NotFoundError: If the book has not been indexed
            ExternalServiceError: If the query cannot be embedded
        """
        if not self.exists():
            raise NotFoundError(f"Vector index not found for book {self.book_id}")

        index = faiss.read_index(str(self.index_path))
        query_vector = np.array(embed_texts([query]), dtype=np.float32)
        faiss.normalize_L2(query_vector)

        scores, indices = index.search(query_vector, min(k, index.ntotal))

        results = []
        conn = duckdb.connect(str(self.db_path), read_only=True)
        try:
            for score, idx in zip(scores[0], indices[0]):
                if idx == -1:
                    continue
                row = conn.execute(
                    "SELECT chunk_id, heading, text FROM chunks WHERE chunk_id = ?", (int(idx),)
                ).fetchone()
                if row:
                    results.append({
                        "chunk_id": row[0],
                        "heading": row[1],
                        "text": row[2],
                        "score": float(score),
                    })
        finally:
            conn.close()

        return results


def _embed_book(filename: Optional[str], store: BookStore) -> Tuple[str, List[Document], List[List[float]]]:
    book_id = book_id_from_filename(filename)
    _require_credential()

    book = extract_text(store.get(book_id))
    splitter = HeadingAwareTextSplitter(
        chunk_size=settings.EMBED_CHUNK_SIZE,
        chunk_overlap=settings.EMBED_CHUNK_OVERLAP
    )
    documents = splitter.split_text(book.text)
    if not documents:
        raise ExtractionError("No text could be extracted from the book")

    logger.info(f"Created {len(documents)} chunks for book {book_id}")
    return book_id, documents, embed_texts([doc.text for doc in documents])


def create_embeddings(filename: Optional[str], store: BookStore) -> EmbeddingReport:
    """Embed a stored book's chunks without persisting them."""
    _, documents, _ = _embed_book(filename, store)
    return EmbeddingReport(num_chunks=len(documents), message="Embeddings created successfully")


def save_to_vector_db(filename: Optional[str], store: BookStore,
                      index_root: Optional[Path] = None) -> EmbeddingReport:
    """
    Embed a stored book and persist it as the book's vector collection.

    Raises:
        ValidationError: If the filename is missing
        NotFoundError: If the book is not stored
        ExtractionError: If no text can be extracted
        ExternalServiceError: If embedding or persistence fails
    """
    book_id, documents, embeddings = _embed_book(filename, store)
    try:
        BookIndex(book_id, index_root).replace(documents, embeddings)
    except Exception as e:
        raise ExternalServiceError(f"Failed to save to vector database: {e}") from e

    return EmbeddingReport(
        num_chunks=len(documents),
        message="Embeddings saved to vector database successfully"
    )


def finalize_book(filename: Optional[str], store: BookStore,
                  index_root: Optional[Path] = None) -> FinalizeResult:
    """
    Mark a book as processed, reporting whether its vector collection answers queries.

    A missing or broken vector collection does not fail finalisation.
    """
    book_id = book_id_from_filename(filename)
    _require_credential()

    if not store.exists(book_id):
        raise NotFoundError("File not found")

    vector_store_available = False
    try:
        results = BookIndex(book_id, index_root).similar_chunks(CHECK_QUERY, k=1)
        vector_store_available = len(results) > 0
    except Exception as e:
        logger.warning(f"Vector store verification failed, continuing without vector store: {e}")

    return FinalizeResult(
        id=book_id,
        title=book_id,
        message=(
            "Book processing completed successfully" if vector_store_available
            else "Book processing completed (vector store not available)"
        ),
        vector_store_available=vector_store_available,
    )
