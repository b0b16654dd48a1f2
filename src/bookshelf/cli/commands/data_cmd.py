# ABOUTME: The `bookshelf export`, `import`, and `import-amazon` commands.
# ABOUTME: Back up the catalog to JSON, restore it, or load an Amazon library export.

import json
import sqlite3
from pathlib import Path

import click
from rich.console import Console

from bookshelf.cli.options import data_dir_option, open_library
from bookshelf.core.data_io import export_to_document, import_amazon_export, import_from_json
from bookshelf.db.errors import CatalogError

console = Console()


@click.command("export")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@data_dir_option
def export_command(output: Path, data_dir: Path | None) -> None:
    """Write the whole catalog to a JSON backup file."""
    with open_library(data_dir) as library:
        document = export_to_document(library)

    output.write_text(json.dumps(document, indent=2), encoding="utf-8")
    console.print(
        f"Exported [bold]{len(document['books'])}[/bold] book(s) and "
        f"[bold]{len(document['userBooks'])}[/bold] collection entry(ies) to {output}"
    )


@click.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--clear-existing",
    is_flag=True,
    default=False,
    help="Accepted for compatibility; existing data is kept and duplicates are skipped.",
)
@data_dir_option
def import_command(source: Path, clear_existing: bool, data_dir: Path | None) -> None:
    """Restore a JSON backup, skipping records that already exist."""
    with open_library(data_dir) as library:
        try:
            result = import_from_json(
                library, source.read_text(encoding="utf-8"), clear_existing=clear_existing
            )
        except (CatalogError, sqlite3.Error, json.JSONDecodeError, KeyError) as exc:
            console.print(f"[red]Import failed:[/red] {exc}")
            raise SystemExit(1) from exc

    parts = [f"[green]{result.total_added} added[/green]"]
    if result.total_skipped:
        parts.append(f"[yellow]{result.total_skipped} skipped[/yellow]")
    console.print(", ".join(parts))


@click.command("import-amazon")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@data_dir_option
def import_amazon(source: Path, data_dir: Path | None) -> None:
    """Add books from an Amazon library export (a JSON list of items)."""
    try:
        items = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/red] {source} is not valid JSON")
        raise SystemExit(1) from exc

    if not isinstance(items, list):
        console.print(f"[red]Error:[/red] {source} must contain a JSON list")
        raise SystemExit(1)

    with open_library(data_dir) as library:
        imported = import_amazon_export(library, items)

    console.print(f"[green]{imported} book(s) imported[/green]")
