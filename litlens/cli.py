"""
Command-line interface for LitLens.
"""

import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import settings
from .catalog import BUILTIN_BOOKS
from .errors import LitLensError
from .extraction import extract_text
from .indexer import save_to_vector_db
from .router import answer_locally, route_question
from .storage import FileBookStore

app = typer.Typer(
    name="litlens",
    help="Ask questions about PDF books",
    add_completion=False
)

console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else settings.LOG_LEVEL)


@app.command()
def ask(
    pdf_path: Path = typer.Argument(..., help="Path to a PDF book"),
    question: str = typer.Argument(..., help="Question about the book"),
    local: bool = typer.Option(False, "--local", help="Skip the completion service even if a key is set"),
) -> None:
    """Answer a question about a PDF and print the structured response."""
    if not pdf_path.exists():
        console.print(f"[red]Error:[/] File not found at {pdf_path}")
        sys.exit(1)

    try:
        book = extract_text(pdf_path.read_bytes())
        response = answer_locally(question, book.text) if local else route_question(question, book.text)
    except LitLensError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    payload = response.model_dump(by_alias=True, exclude_none=True)
    console.print(Panel(
        json.dumps(payload, indent=2, ensure_ascii=False),
        title=f"{response.response_type} ({book.num_pages} pages)",
        border_style="green"
    ))


@app.command()
def upload(pdf_path: Path = typer.Argument(..., help="Path to a PDF book")) -> None:
    """Copy a PDF into the book store and print its id."""
    if not pdf_path.exists():
        console.print(f"[red]Error:[/] File not found at {pdf_path}")
        sys.exit(1)

    book_id = FileBookStore().put(pdf_path.read_bytes())
    console.print(f"[green]Stored[/] {pdf_path.name} as [bold]{book_id}[/]")


@app.command()
def index(book_id: str = typer.Argument(..., help="Id of a stored book")) -> None:
    """Embed a stored book and save it to the vector index."""
    try:
        report = save_to_vector_db(f"{book_id}.pdf", FileBookStore())
    except LitLensError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    console.print(f"[green]{report.message}[/] ({report.num_chunks} chunks)")


@app.command()
def books() -> None:
    """List the built-in sample books."""
    table = Table(title="Built-in books")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Author")
    for book in BUILTIN_BOOKS:
        if not book.is_placeholder:
            table.add_row(book.id, book.title, book.author)
    console.print(table)


if __name__ == "__main__":
    app()
