# ABOUTME: The `bookshelf ls` command for listing cataloged books.
# ABOUTME: Displays a Rich table of every book, newest first.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import data_dir_option, open_library

console = Console()


@click.command("ls")
@data_dir_option
def ls(data_dir: Path | None) -> None:
    """List all books in the catalog."""
    with open_library(data_dir) as library:
        books = library.books.get_all_books()

        if not books:
            console.print("[yellow]No books in the library.[/yellow]")
            return

        table = Table()
        table.add_column("ID", style="dim", width=8)
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Format")
        table.add_column("Year", justify="right")

        for book in books:
            table.add_row(
                book.id[:8],
                book.title,
                book.author,
                book.format.value if book.format else "",
                str(book.publication_year) if book.publication_year else "",
            )

        console.print(table)
        console.print(f"\n[dim]{len(books)} book(s)[/dim]")
