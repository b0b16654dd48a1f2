# ABOUTME: The `bookshelf reset` command for wiping the stored library.
# ABOUTME: Deletes the database image so the next run starts with an empty schema.

from pathlib import Path

import click
from rich.console import Console

from bookshelf.cli.options import data_dir_option
from bookshelf.db.core import DEFAULT_STORAGE_DIR, Database
from bookshelf.db.storage import FileStorage

console = Console()


@click.command("reset")
@click.confirmation_option(prompt="This deletes every book, series, and shelf entry. Continue?")
@data_dir_option
def reset(data_dir: Path | None) -> None:
    """Delete the stored library."""
    # No initialize(): a corrupt image must still be removable.
    Database(FileStorage(data_dir or DEFAULT_STORAGE_DIR)).clear_storage()
    console.print("[green]Library cleared.[/green]")
