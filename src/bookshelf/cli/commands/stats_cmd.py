# ABOUTME: The `bookshelf stats` command for catalog and collection counts.
# ABOUTME: Shows total books plus the local profile's collection and series counts.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import data_dir_option, open_library

console = Console()


@click.command("stats")
@data_dir_option
def stats(data_dir: Path | None) -> None:
    """Show catalog statistics."""
    with open_library(data_dir) as library:
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Field", style="bold", width=14)
        table.add_column("Value", justify="right")

        table.add_row("Books", str(library.statistics.get_book_count()))
        user = library.users.get_first_user()
        if user is not None:
            table.add_row("Profile", user.display_name or user.username)
            table.add_row("Collection", str(library.statistics.get_user_book_count(user.id)))
            table.add_row("Series", str(library.statistics.get_user_series_count(user.id)))

        console.print(table)
