# ABOUTME: Export the whole catalog to a JSON document and import it back.
# ABOUTME: Imports merge into existing data, skipping duplicates; also converts Amazon exports.

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from bookshelf.db.errors import CatalogError, ConflictError
from bookshelf.db.library import Library
from bookshelf.db.mapping import BookFormat, BookInput, coerce_date, utc_now

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"

_TRAILING_SEPARATORS = re.compile(r"[:\s]+$")

_USER_BOOK_FIELDS = {
    "status": "status",
    "startedDate": "started_date",
    "finishedDate": "finished_date",
    "progress": "progress",
}


@dataclass
class ImportResult:
    """Per-entity counts of records created and records skipped as duplicates."""

    added: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)

    def _bump(self, counts: dict[str, int], kind: str) -> None:
        counts[kind] = counts.get(kind, 0) + 1

    def record_added(self, kind: str) -> None:
        self._bump(self.added, kind)

    def record_skipped(self, kind: str) -> None:
        self._bump(self.skipped, kind)

    @property
    def total_added(self) -> int:
        return sum(self.added.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


# --- Export ---


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def record_to_dict(record: Any) -> dict[str, Any]:
    """Render a record dataclass with camelCase keys and ISO-8601 dates."""
    return {_camel(key): _jsonable(value) for key, value in asdict(record).items()}


def export_to_document(library: Library) -> dict[str, Any]:
    """Assemble the whole catalog as a JSON-ready document.

    Only the local profile (the first user) and its collection and reading
    logs are included. Books and collection entries are listed oldest first
    so an import recreates them in their original order.
    """
    user = library.users.get_first_user()
    books = list(reversed(library.books.get_all_books()))

    user_books = []
    reading_logs = []
    if user is not None:
        entries = library.user_books.get_user_books(user.id)
        user_books = [entry.user_book for entry in reversed(entries) if entry.user_book]
        reading_logs = library.reading_counts.get_reading_count_logs(user.id)

    return {
        "users": [record_to_dict(user)] if user else [],
        "books": [record_to_dict(book) for book in books],
        "series": [record_to_dict(series) for series in library.series.get_all_series()],
        "genres": [record_to_dict(genre) for genre in library.genres.get_all_genres()],
        "userBooks": [record_to_dict(entry) for entry in user_books],
        "readingCountLogs": [record_to_dict(log) for log in reading_logs],
        "bookGenreMap": {
            book.id: library.genres.get_book_genre_names(book.id) for book in books
        },
        "exportedAt": utc_now().isoformat(),
        "version": EXPORT_VERSION,
    }


def export_to_json(library: Library) -> str:
    """Export the catalog as indented JSON text."""
    return json.dumps(export_to_document(library), indent=2)


# --- Import ---


def _import_users(
    library: Library, items: list[Mapping[str, Any]], result: ImportResult
) -> dict[str, str]:
    ids: dict[str, str] = {}
    for item in items:
        old_id = item.get("id")
        try:
            user = library.users.create_user(
                item["username"],
                item.get("displayName"),
                item.get("email"),
                user_id=old_id,
            )
            result.record_added("users")
        except ConflictError:
            user = library.users.get_user_by_username(item["username"])
            if user is None and old_id:
                user = library.users.get_user(old_id)
            logger.info("Skipped existing user %s", item["username"])
            result.record_skipped("users")
        if old_id and user is not None:
            ids[old_id] = user.id
    return ids


def _import_series(
    library: Library, items: list[Mapping[str, Any]], result: ImportResult
) -> dict[str, str]:
    ids: dict[str, str] = {}
    for item in items:
        old_id = item.get("id")
        try:
            series = library.series.create_series(item["name"], item["author"], series_id=old_id)
            result.record_added("series")
        except ConflictError:
            series = library.series.find_series(item["name"], item["author"])
            if series is None and old_id:
                series = library.series.get_series(old_id)
            logger.info("Skipped existing series %r by %s", item["name"], item["author"])
            result.record_skipped("series")
        if old_id and series is not None:
            ids[old_id] = series.id
    return ids


def _resolve_series_id(
    library: Library, series_ids: dict[str, str], old_id: str | None
) -> str | None:
    if not old_id:
        return None
    if old_id in series_ids:
        return series_ids[old_id]
    if library.series.get_series(old_id) is not None:
        return old_id
    logger.warning("Dropping reference to unknown series %s", old_id)
    return None


def _import_books(
    library: Library,
    items: list[Mapping[str, Any]],
    genre_map: Mapping[str, list[str]],
    series_ids: dict[str, str],
    result: ImportResult,
) -> dict[str, str]:
    ids: dict[str, str] = {}
    for item in items:
        old_id = item.get("id")
        data = BookInput(
            title=item["title"],
            author=item["author"],
            isbn=item.get("isbn"),
            asin=item.get("asin"),
            series_id=_resolve_series_id(library, series_ids, item.get("seriesId")),
            position=item.get("position"),
            publication_year=item.get("publicationYear"),
            pages=item.get("pages"),
            format=item.get("format"),
            cover_image_url=item.get("coverImageUrl"),
            description=item.get("description"),
            genres=list(genre_map.get(old_id, [])) if old_id else None,
        )
        try:
            book = library.books.create_book(data, book_id=old_id)
            logger.info("Imported book %r by %s", book.title, book.author)
            result.record_added("books")
        except ConflictError:
            book = library.books.find_book(data.title, data.author)
            if book is None and old_id:
                book = library.books.get_book(old_id)
            logger.info("Skipped existing book %r by %s", data.title, data.author)
            result.record_skipped("books")
        if old_id and book is not None:
            ids[old_id] = book.id
    return ids


def _import_user_books(
    library: Library,
    items: list[Mapping[str, Any]],
    user_ids: dict[str, str],
    book_ids: dict[str, str],
    result: ImportResult,
) -> None:
    for item in items:
        user_id = user_ids.get(item["userId"], item["userId"])
        book_id = book_ids.get(item["bookId"], item["bookId"])
        try:
            library.user_books.add_book_to_user_collection(
                user_id, book_id, user_book_id=item.get("id")
            )
        except ConflictError:
            logger.info("Skipped existing collection entry for book %s", book_id)
            result.record_skipped("userBooks")
            continue

        updates = {
            name: item[key] for key, name in _USER_BOOK_FIELDS.items() if item.get(key) is not None
        }
        if updates:
            library.user_books.update_user_book(user_id, book_id, **updates)
        result.record_added("userBooks")


def _import_reading_logs(
    library: Library,
    items: list[Mapping[str, Any]],
    user_ids: dict[str, str],
    series_ids: dict[str, str],
    book_ids: dict[str, str],
    result: ImportResult,
) -> None:
    for item in items:
        book_id = item.get("bookId")
        series_id = item.get("seriesId")
        try:
            library.reading_counts.add_reading_count_log(
                user_ids.get(item["userId"], item["userId"]),
                book_ids.get(book_id, book_id) if book_id else None,
                series_ids.get(series_id, series_id) if series_id else None,
                coerce_date(item.get("readDate")),
                log_id=item.get("id"),
            )
            result.record_added("readingCountLogs")
        except ConflictError:
            logger.info("Skipped existing reading log %s", item.get("id"))
            result.record_skipped("readingCountLogs")


def import_from_document(
    library: Library, doc: Mapping[str, Any], clear_existing: bool = False
) -> ImportResult:
    """Recreate a catalog from an export document, merging into existing data.

    Entities are created in dependency order: users, series, genres, books,
    collection entries, reading logs. Records that already exist are skipped
    and references to them are pointed at the existing rows. Any other error
    stops the import and propagates.

    `clear_existing` is accepted but existing data is never wiped; the import
    always merges and skips duplicates.

    Returns:
        ImportResult with per-entity added and skipped counts.
    """
    if clear_existing:
        logger.warning("clear_existing is not implemented; duplicates will be skipped instead")

    result = ImportResult()
    user_ids = _import_users(library, doc.get("users", []), result)
    series_ids = _import_series(library, doc.get("series", []), result)

    for genre in doc.get("genres", []):
        if (genre.get("name") or "").strip():
            library.genres.get_or_create_genre(genre["name"])

    book_ids = _import_books(
        library, doc.get("books", []), doc.get("bookGenreMap", {}), series_ids, result
    )
    _import_user_books(library, doc.get("userBooks", []), user_ids, book_ids, result)
    _import_reading_logs(
        library, doc.get("readingCountLogs", []), user_ids, series_ids, book_ids, result
    )

    logger.info(
        "Import summary: %d added, %d skipped", result.total_added, result.total_skipped
    )
    return result


def import_from_json(library: Library, text: str, clear_existing: bool = False) -> ImportResult:
    """Parse an exported JSON string and import it."""
    return import_from_document(library, json.loads(text), clear_existing=clear_existing)


# --- Amazon export ---


def convert_amazon_export(items: Iterable[Mapping[str, Any]]) -> list[BookInput]:
    """Map Amazon library export records to book inputs.

    The first listed author is used with any trailing colon/whitespace run
    removed; a missing or blank author becomes "Unknown" and a missing title
    "Untitled". EBOOK resources are marked digital.
    """
    books = []
    for item in items:
        authors = item.get("authors")
        author = ""
        if isinstance(authors, list) and authors and isinstance(authors[0], str):
            author = _TRAILING_SEPARATORS.sub("", authors[0], count=1)
        books.append(
            BookInput(
                title=item.get("title") or "Untitled",
                author=author or "Unknown",
                asin=item.get("asin") or None,
                format=BookFormat.DIGITAL if item.get("resourceType") == "EBOOK" else None,
                cover_image_url=item.get("productUrl") or None,
            )
        )
    return books


def import_amazon_export(library: Library, items: Iterable[Mapping[str, Any]]) -> int:
    """Create a book for each Amazon record, skipping ones already cataloged.

    Records that fail validation are logged and skipped.

    Returns:
        The number of books created.
    """
    imported = 0
    for data in convert_amazon_export(items):
        try:
            library.books.create_book(data)
        except ConflictError:
            continue
        except CatalogError as exc:
            logger.warning("Failed to import book %r: %s", data.title, exc)
            continue
        imported += 1
    return imported
