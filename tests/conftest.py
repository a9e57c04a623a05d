"""
Shared fixtures for the LitLens tests.
"""

import io
import os
import sys
import unittest.mock
from pathlib import Path
from typing import List, Optional

import pytest

# The OpenAI module client needs a key to be constructed, even when patched
os.environ.setdefault("OPENAI_API_KEY", "test-key")
sys.path.insert(0, str(Path(__file__).parent.parent))

from pypdf import PdfReader, PdfWriter

from litlens import settings
from litlens.storage import InMemoryBookStore


GATSBY_TEXT = (
    "In my younger and more vulnerable years my father gave me some advice that I have been "
    "turning over in my mind ever since.\n\n"
    "Gatsby believed in the green light, the orgastic future that year by year recedes before us. "
    "Gatsby reached toward it across the bay.\n\n"
    "Short line.\n\n"
    "Daisy Buchanan laughed in her white dress while Tom Buchanan watched from the porch of the house.\n\n"
    "Nick Carraway rented a small house in West Egg beside the enormous mansion owned by Gatsby."
)


def _pdf_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(pages: List[str], title: Optional[str] = None, author: Optional[str] = None) -> bytes:
    """Build a small PDF with one line of Helvetica text per input line."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, page_text in zip(page_ids, pages):
        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in page_text.split("\n"):
            ops.append(f"({_pdf_string(line)}) Tj")
            ops.append("T*")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>".encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(f"{number} 0 obj\n".encode() + body + b"\nendobj\n")

    xref_offset = out.tell()
    out.write(f"xref\n0 {len(objects) + 1}\n".encode())
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(f"{offset:010d} 00000 n \n".encode())
    out.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    )
    data = out.getvalue()

    if title or author:
        writer = PdfWriter(clone_from=PdfReader(io.BytesIO(data)))
        metadata = {}
        if title:
            metadata["/Title"] = title
        if author:
            metadata["/Author"] = author
        writer.add_metadata(metadata)
        buffer = io.BytesIO()
        writer.write(buffer)
        data = buffer.getvalue()

    return data


def build_blank_pdf(num_pages: int = 1) -> bytes:
    """Build a PDF whose pages carry no text."""
    writer = PdfWriter()
    for _ in range(num_pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def chat_reply(content: Optional[str]) -> unittest.mock.MagicMock:
    """A chat completion response carrying the given message content."""
    response = unittest.mock.MagicMock()
    response.choices = [
        unittest.mock.MagicMock(message=unittest.mock.MagicMock(content=content))
    ]
    return response


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test without a completion credential and with storage under tmp_path."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "UPLOADS_DIR", tmp_path / "uploads")
    monkeypatch.setattr(settings, "SAMPLES_DIR", tmp_path / "samples")
    monkeypatch.setattr(settings, "INDEX_ROOT", tmp_path / "indexes")
    monkeypatch.setattr(settings, "BUILTIN_BOOKS_DIR", tmp_path / "builtin")


@pytest.fixture
def with_key(monkeypatch):
    """Configure a completion credential."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "test-key")


@pytest.fixture
def gatsby_pdf() -> bytes:
    return build_pdf(
        [GATSBY_TEXT.split("\n\n")[0] + "\n" + GATSBY_TEXT.split("\n\n")[1],
         "\n".join(GATSBY_TEXT.split("\n\n")[2:])],
        title="The Great Gatsby",
        author="F. Scott Fitzgerald",
    )


@pytest.fixture
def store() -> InMemoryBookStore:
    return InMemoryBookStore()


@pytest.fixture
def gatsby_store(store, gatsby_pdf):
    """A store holding the sample book; returns (store, book_id)."""
    book_id = store.put(gatsby_pdf)
    return store, book_id
