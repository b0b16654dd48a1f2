# ABOUTME: The `bookshelf shelf` command for viewing the local profile's collection.
# ABOUTME: Supports status/author/genre filters and the collection sort keys.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import data_dir_option, open_library
from bookshelf.db.mapping import BookFilters, ReadingStatus, SortOption

console = Console()


@click.command("shelf")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice([status.value for status in ReadingStatus]),
    help="Only show books with this reading status (repeatable).",
)
@click.option("--author", "authors", multiple=True, help="Filter by author (repeatable).")
@click.option("--genre", "genres", multiple=True, help="Filter by genre (repeatable).")
@click.option(
    "--sort",
    type=click.Choice([option.value for option in SortOption]),
    default=SortOption.LATEST_ADDED.value,
    show_default=True,
    help="Sort order.",
)
@data_dir_option
def shelf(
    statuses: tuple[str, ...],
    authors: tuple[str, ...],
    genres: tuple[str, ...],
    sort: str,
    data_dir: Path | None,
) -> None:
    """Show the books in your collection with their reading progress."""
    with open_library(data_dir) as library:
        user = library.users.get_first_user()
        if user is None:
            console.print("[yellow]No profile yet. Import a backup to get started.[/yellow]")
            return

        filters = BookFilters(status=list(statuses), authors=list(authors), genres=list(genres))
        entries = library.user_books.get_user_books(user.id, filters, sort)

        if not entries:
            console.print("[yellow]No books on your shelf.[/yellow]")
            return

        table = Table()
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Status")
        table.add_column("Progress", justify="right")
        table.add_column("Reads", justify="right")

        for entry in entries:
            assert entry.user_book is not None
            table.add_row(
                entry.book.title,
                entry.book.author,
                entry.user_book.status.value,
                f"{entry.user_book.progress}%",
                str(entry.reading_count or 0),
            )

        console.print(table)
        console.print(f"\n[dim]{len(entries)} book(s)[/dim]")
