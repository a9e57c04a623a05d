"""
Tests for the FastAPI endpoints.
"""

import unittest.mock

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_book_store
from litlens import settings


@pytest.fixture
def client(store):
    app.dependency_overrides[get_book_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def uploaded_id(client, gatsby_pdf):
    response = client.post("/upload-book", files={"file": ("gatsby.pdf", gatsby_pdf, "application/pdf")})
    return response.json()["id"]


class TestBookEndpoints:
    """Test cases for upload and book retrieval endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_builtin_books(self, client):
        response = client.get("/builtin-books")
        assert response.status_code == 200
        books = response.json()
        assert len(books) == 4
        assert books[0]["codeColor"] == "purple"
        assert books[-1]["isPlaceholder"] is True

    def test_upload_book(self, client, gatsby_pdf):
        response = client.post("/upload-book", files={"file": ("gatsby.pdf", gatsby_pdf, "application/pdf")})
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "The Great Gatsby"
        assert data["totalPages"] == 2
        assert data["isProcessed"] is True
        assert "uploadDate" in data

    def test_upload_requires_file(self, client):
        response = client.post("/upload-book")
        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_upload_rejects_non_pdf(self, client):
        response = client.post("/upload-book", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400
        assert response.json() == {"error": "Only PDF files are supported"}

    def test_get_book(self, client, uploaded_id):
        response = client.get(f"/books/{uploaded_id}")
        assert response.status_code == 200
        assert response.json()["id"] == uploaded_id

    def test_get_missing_book(self, client):
        response = client.get("/books/missing-book")
        assert response.status_code == 404
        assert response.json() == {"error": "Book not found"}

    def test_get_book_pdf(self, client, uploaded_id, gatsby_pdf):
        response = client.get(f"/book-pdf/{uploaded_id}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == gatsby_pdf

    def test_prepare_builtin_book(self, client):
        settings.BUILTIN_BOOKS_DIR.mkdir(parents=True)
        (settings.BUILTIN_BOOKS_DIR / "Percy Jackson.pdf").write_bytes(b"%PDF percy")

        response = client.get("/prepare-builtin-book/percy-jackson")
        assert response.status_code == 200
        assert response.json()["bookId"] == "percy-jackson"

    def test_prepare_placeholder(self, client):
        response = client.get("/prepare-builtin-book/coming-soon")
        assert response.status_code == 400

    def test_extract_book_data(self, client, uploaded_id):
        response = client.post("/extract-book-data", json={"filename": f"{uploaded_id}.pdf"})
        assert response.status_code == 200
        data = response.json()
        assert data["numPages"] == 2
        assert data["info"]["Author"] == "F. Scott Fitzgerald"
        assert "green light" in data["content"]

    def test_extract_requires_filename(self, client):
        response = client.post("/extract-book-data", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Filename is required"}


class TestQueryEndpoint:
    """Test cases for /query-book."""

    def test_local_character_answer(self, client, uploaded_id):
        response = client.post("/query-book", json={"question": "Who is Gatsby?", "bookId": uploaded_id})
        assert response.status_code == 200
        data = response.json()
        assert data["responseType"] == "character_profile"
        assert "character" in data
        assert "characters" not in data

    def test_local_timeline_answer(self, client, uploaded_id):
        response = client.post("/query-book", json={"question": "What happens at the party?", "bookId": uploaded_id})
        assert response.status_code == 200
        data = response.json()
        assert data["responseType"] == "timeline"
        assert [event["color"] for event in data["timeline"]] == ["blue", "purple", "amber"]

    def test_question_required(self, client, uploaded_id):
        response = client.post("/query-book", json={"bookId": uploaded_id})
        assert response.status_code == 400
        assert response.json() == {"error": "Question is required"}

    def test_unknown_book(self, client):
        response = client.post("/query-book", json={"question": "Who is Gatsby?", "bookId": "missing"})
        assert response.status_code == 404

    def test_unexpected_error(self, client, uploaded_id):
        with unittest.mock.patch('api.main.answer_question', side_effect=RuntimeError("boom")):
            response = client.post("/query-book", json={"question": "Who is Gatsby?", "bookId": uploaded_id})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process query"}


class TestProcessingEndpoints:
    """Test cases for the embedding and finalisation endpoints."""

    def test_finalize_requires_credential(self, client, uploaded_id):
        response = client.post("/finalize-book", json={"filename": f"{uploaded_id}.pdf"})
        assert response.status_code == 500
        assert response.json() == {"error": "OpenAI API key is not configured"}

    def test_save_and_finalize(self, client, uploaded_id, with_key):
        def create(model, input):
            response = unittest.mock.MagicMock()
            response.data = [unittest.mock.MagicMock(embedding=[1.0, float(len(text) % 5), 0.5]) for text in input]
            return response

        with unittest.mock.patch('openai.embeddings.create', side_effect=create):
            saved = client.post("/save-to-vector-db", json={"filename": f"{uploaded_id}.pdf"})
            finalized = client.post("/finalize-book", json={"filename": f"{uploaded_id}.pdf"})

        assert saved.status_code == 200
        assert saved.json()["numChunks"] >= 1
        assert finalized.status_code == 200
        assert finalized.json()["vectorStoreAvailable"] is True

    def test_create_embeddings(self, client, uploaded_id, with_key):
        with unittest.mock.patch('openai.embeddings.create') as mock_create:
            mock_create.return_value.data = [unittest.mock.MagicMock(embedding=[0.1, 0.2])]
            response = client.post("/create-embeddings", json={"filename": f"{uploaded_id}.pdf"})

        assert response.status_code == 200
        assert response.json()["message"] == "Embeddings created successfully"

    def test_completion_failure_falls_back(self, client, uploaded_id, with_key):
        with unittest.mock.patch('openai.chat.completions.create') as mock_openai:
            mock_openai.side_effect = RuntimeError("service unavailable")
            response = client.post("/query-book", json={"question": "Compare Gatsby and Tom", "bookId": uploaded_id})

        assert response.status_code == 200
        assert response.json()["comparison"]["element1"]["name"] == "Gatsby"
