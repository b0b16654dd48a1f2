# ABOUTME: Shared Click options and helpers for Bookshelf CLI commands.
# ABOUTME: Provides the --data-dir option and the library-opening context manager.

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from bookshelf.db.core import DEFAULT_STORAGE_DIR
from bookshelf.db.library import Library

data_dir_option = click.option(
    "--data-dir",
    "data_dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="BOOKSHELF_DATA_DIR",
    default=None,
    help=f"Directory holding the library image (default: {DEFAULT_STORAGE_DIR})",
)


@contextmanager
def open_library(data_dir: Path | None) -> Iterator[Library]:
    """Open the library for one command and close it afterwards."""
    library = Library.open(data_dir)
    try:
        yield library
    finally:
        library.close()
