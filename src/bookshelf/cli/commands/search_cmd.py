# ABOUTME: The `bookshelf search` command for substring search of the catalog.
# ABOUTME: Matches title, author, ISBN, ASIN, and series name/author.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import data_dir_option, open_library

console = Console()


@click.command("search")
@click.argument("query")
@click.option("--user", "username", default=None, help="Mark books owned by this user.")
@data_dir_option
def search(query: str, username: str | None, data_dir: Path | None) -> None:
    """Search the catalog by title, author, ISBN, ASIN, or series."""
    with open_library(data_dir) as library:
        user = (
            library.users.get_user_by_username(username)
            if username
            else library.users.get_first_user()
        )
        results = library.books.search_books(query, user.id if user else None)

        if not results:
            console.print("[yellow]No results found.[/yellow]")
            return

        table = Table()
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Series")
        table.add_column("Genres")
        table.add_column("Owned", justify="center")

        for result in results:
            series_display = ""
            if result.series:
                position = result.book.position
                series_display = (
                    f"{result.series.name} #{position}" if position else result.series.name
                )
            table.add_row(
                result.book.title,
                result.book.author,
                series_display,
                ", ".join(genre.name for genre in result.genres),
                "yes" if result.is_owned else "",
            )

        console.print(table)
        console.print(f"\n[dim]{len(results)} result(s)[/dim]")
