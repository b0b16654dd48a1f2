# ABOUTME: CLI package for Bookshelf, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from bookshelf.cli.commands import (
    data_cmd,
    ls_cmd,
    reset_cmd,
    search_cmd,
    shelf_cmd,
    stats_cmd,
)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(package_name="bookshelf")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Bookshelf - a personal catalog of books, series, and reading progress."""
    setup_logging(verbose)


cli.add_command(ls_cmd.ls)
cli.add_command(search_cmd.search)
cli.add_command(shelf_cmd.shelf)
cli.add_command(stats_cmd.stats)
cli.add_command(data_cmd.export_command)
cli.add_command(data_cmd.import_command)
cli.add_command(data_cmd.import_amazon)
cli.add_command(reset_cmd.reset)
