"""
Tests for embedding and vector storage in litlens.indexer.
"""

import unittest.mock

import duckdb
import pytest

from litlens import settings
from litlens.errors import ExternalServiceError, ExtractionError, NotFoundError, ValidationError
from litlens.indexer import (
    BookIndex,
    create_embeddings,
    embed_texts,
    finalize_book,
    save_to_vector_db,
)

from conftest import build_blank_pdf


def _fake_embedding(text):
    return [1.0 if "green" in text.lower() else 0.1, 1.0, float(len(text) % 7)]


@pytest.fixture
def mock_openai_embedding():
    """Mock OpenAI embedding API calls with small deterministic vectors."""
    def create(model, input):
        response = unittest.mock.MagicMock()
        response.data = [unittest.mock.MagicMock(embedding=_fake_embedding(text)) for text in input]
        return response

    with unittest.mock.patch('openai.embeddings.create', side_effect=create) as mock_create:
        yield mock_create


class TestEmbedTexts:
    """Test cases for batched embedding."""

    def test_batches(self, with_key, mock_openai_embedding, monkeypatch):
        monkeypatch.setattr(settings, "BATCH_SIZE", 2)
        texts = ["one", "two", "three", "four", "green five"]

        embeddings = embed_texts(texts)

        assert mock_openai_embedding.call_count == 3
        assert embeddings == [_fake_embedding(text) for text in texts]
        assert mock_openai_embedding.call_args_list[0].kwargs == {
            "model": settings.EMBED_MODEL, "input": ["one", "two"],
        }

    def test_requires_credential(self, mock_openai_embedding):
        with pytest.raises(ExternalServiceError, match="not configured"):
            embed_texts(["text"])
        mock_openai_embedding.assert_not_called()

    def test_service_failure(self, with_key):
        with unittest.mock.patch('openai.embeddings.create', side_effect=RuntimeError("rate limited")):
            with pytest.raises(ExternalServiceError, match="rate limited"):
                embed_texts(["text"])


class TestVectorStorage:
    """Test cases for persisting and querying a book's vector collection."""

    def test_save_to_vector_db(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store

        report = save_to_vector_db(f"{book_id}.pdf", store)

        assert report.success
        assert report.num_chunks > 0
        book_index = BookIndex(book_id)
        assert book_index.exists()

        conn = duckdb.connect(str(book_index.db_path), read_only=True)
        try:
            rows = conn.execute("SELECT book_id, text FROM chunks ORDER BY chunk_id").fetchall()
        finally:
            conn.close()
        assert len(rows) == report.num_chunks
        assert all(row[0] == book_id for row in rows)
        assert any("green light" in row[1] for row in rows)

    def test_save_replaces_collection(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store

        first = save_to_vector_db(f"{book_id}.pdf", store)
        second = save_to_vector_db(f"{book_id}.pdf", store)

        conn = duckdb.connect(str(BookIndex(book_id).db_path), read_only=True)
        try:
            count = conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
        finally:
            conn.close()
        assert count == first.num_chunks == second.num_chunks

    def test_similar_chunks(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store
        save_to_vector_db(f"{book_id}.pdf", store)

        results = BookIndex(book_id).similar_chunks("the green light", k=1)

        assert len(results) == 1
        assert set(results[0]) == {"chunk_id", "heading", "text", "score"}

    def test_similar_chunks_requires_index(self, with_key):
        with pytest.raises(NotFoundError):
            BookIndex("never-indexed").similar_chunks("anything")

    def test_create_embeddings_does_not_persist(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store

        report = create_embeddings(f"{book_id}.pdf", store)

        assert report.num_chunks > 0
        assert report.message == "Embeddings created successfully"
        assert not BookIndex(book_id).exists()

    def test_requires_credential(self, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store
        with pytest.raises(ExternalServiceError):
            save_to_vector_db(f"{book_id}.pdf", store)

    def test_requires_filename(self, with_key, store):
        with pytest.raises(ValidationError, match="Filename is required"):
            save_to_vector_db(None, store)

    def test_unknown_book(self, with_key, store):
        with pytest.raises(NotFoundError):
            save_to_vector_db("missing.pdf", store)

    def test_book_without_text(self, with_key, mock_openai_embedding, store):
        book_id = store.put(build_blank_pdf())
        with pytest.raises(ExtractionError):
            save_to_vector_db(f"{book_id}.pdf", store)
        mock_openai_embedding.assert_not_called()

    def test_embedding_failure_is_surfaced(self, with_key, gatsby_store):
        store, book_id = gatsby_store
        with unittest.mock.patch('openai.embeddings.create', side_effect=RuntimeError("quota exceeded")):
            with pytest.raises(ExternalServiceError):
                save_to_vector_db(f"{book_id}.pdf", store)
        assert not BookIndex(book_id).exists()


class TestFinalizeBook:
    """Test cases for finalising a processed book."""

    def test_with_vector_store(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store
        save_to_vector_db(f"{book_id}.pdf", store)

        result = finalize_book(f"{book_id}.pdf", store)

        assert result.id == book_id
        assert result.vector_store_available
        assert result.message == "Book processing completed successfully"

    def test_without_vector_store(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store

        result = finalize_book(f"{book_id}.pdf", store)

        assert result.success
        assert not result.vector_store_available
        assert result.message == "Book processing completed (vector store not available)"

    def test_check_query_failure_does_not_fail(self, with_key, mock_openai_embedding, gatsby_store):
        store, book_id = gatsby_store
        save_to_vector_db(f"{book_id}.pdf", store)

        with unittest.mock.patch('openai.embeddings.create', side_effect=RuntimeError("unreachable")):
            result = finalize_book(f"{book_id}.pdf", store)

        assert not result.vector_store_available

    def test_missing_file(self, with_key, store):
        with pytest.raises(NotFoundError, match="File not found"):
            finalize_book("missing.pdf", store)

    def test_requires_credential(self, gatsby_store):
        store, book_id = gatsby_store
        with pytest.raises(ExternalServiceError):
            finalize_book(f"{book_id}.pdf", store)
