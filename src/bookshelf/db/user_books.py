# ABOUTME: Collection operations linking users to books with reading status.
# ABOUTME: Add/update/remove entries, bulk variants, and the filtered collection view.

import logging
import sqlite3
import uuid
from typing import Any

from bookshelf.db.core import Database
from bookshelf.db.errors import CatalogError, ConflictError, NotFoundError, ValidationError
from bookshelf.db.genres import GenreStore
from bookshelf.db.helpers import (
    escape_like,
    exec_run,
    exec_select,
    exec_select_one,
    placeholders,
)
from bookshelf.db.mapping import (
    SERIES_JOIN_COLUMNS,
    USER_BOOK_JOIN_COLUMNS,
    BookDetails,
    BookFilters,
    ReadingStatus,
    SortOption,
    UserBook,
    coerce_date,
    enum_value,
    format_date,
    format_timestamp,
    row_to_book,
    row_to_series,
    row_to_user_book,
    utc_now,
)
from bookshelf.db.reading_counts import ReadingCountStore
from bookshelf.db.validation import validate_date_not_future

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"status", "started_date", "finished_date", "progress"}

_ORDER_BY = {
    SortOption.LATEST_ADDED: "ub.added_at DESC",
    SortOption.TITLE_AZ: "b.title ASC",
    SortOption.AUTHOR_AZ: "b.author ASC",
    SortOption.YEAR: "b.publication_year DESC",
    SortOption.DATE_STARTED: "ub.started_date DESC",
    SortOption.DATE_FINISHED: "ub.finished_date DESC",
}

DATE_ORDER_MESSAGE = "Start date must be prior to finish date"


def is_owned(conn: sqlite3.Connection, user_id: str | None, book_id: str) -> bool:
    """Whether the user has this book in their collection. False without a user."""
    if not user_id:
        return False
    row = exec_select_one(
        conn,
        "SELECT 1 FROM user_books WHERE user_id = ? AND book_id = ?",
        (user_id, book_id),
    )
    return row is not None


def _sort_option(sort: SortOption | str) -> SortOption:
    try:
        return SortOption(sort)
    except ValueError:
        logger.debug("Unknown sort option %r, using latest-added", sort)
        return SortOption.LATEST_ADDED


class UserBookStore:
    """A user's collection: one user_books row per (user, book)."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._genres = GenreStore(db)
        self._reading_counts = ReadingCountStore(db)

    def add_book_to_user_collection(
        self, user_id: str, book_id: str, *, user_book_id: str | None = None
    ) -> UserBook:
        """Add a book to a user's collection as to-read with 0% progress.

        Raises:
            NotFoundError: If the user or the book does not exist.
            ConflictError: If the book is already in the collection.
        """
        conn = self._db.get_handle()
        if exec_select_one(conn, "SELECT 1 FROM users WHERE id = ?", (user_id,)) is None:
            raise NotFoundError("User not found")
        if exec_select_one(conn, "SELECT 1 FROM books WHERE id = ?", (book_id,)) is None:
            raise NotFoundError("Book not found")
        if self.get_user_book(user_id, book_id) is not None:
            raise ConflictError("Book is already in your collection")

        new_id = user_book_id or str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self._db.transaction() as conn:
            try:
                exec_run(
                    conn,
                    "INSERT INTO user_books "
                    "(id, user_id, book_id, status, progress, added_at, updated_at) "
                    "VALUES (?, ?, ?, ?, 0, ?, ?)",
                    (new_id, user_id, book_id, ReadingStatus.TO_READ.value, now, now),
                )
            except sqlite3.IntegrityError as exc:
                if "user_books.id" in str(exc):
                    raise ConflictError(f"Collection entry {new_id} already exists") from exc
                raise

        user_book = self.get_user_book(user_id, book_id)
        assert user_book is not None
        return user_book

    def get_user_book(self, user_id: str, book_id: str) -> UserBook | None:
        """Retrieve the collection entry for a user and book."""
        row = exec_select_one(
            self._db.get_handle(),
            "SELECT * FROM user_books WHERE user_id = ? AND book_id = ?",
            (user_id, book_id),
        )
        return row_to_user_book(row) if row else None

    def get_user_books(
        self,
        user_id: str,
        filters: BookFilters | None = None,
        sort: SortOption | str = SortOption.LATEST_ADDED,
    ) -> list[BookDetails]:
        """Return a user's collection joined with series, genres, and read counts.

        Every non-empty filter narrows the result (filters are ANDed). Author
        and genre matching ignore case; ISBN and ASIN match as substrings.
        Unknown sort keys fall back to latest-added.
        """
        sql = (
            f"SELECT b.*, {USER_BOOK_JOIN_COLUMNS}, {SERIES_JOIN_COLUMNS} "
            "FROM user_books ub "
            "JOIN books b ON ub.book_id = b.id "
            "LEFT JOIN series s ON b.series_id = s.id "
            "WHERE ub.user_id = ?"
        )
        params: list[Any] = [user_id]

        if filters is not None:
            if filters.status:
                sql += f" AND ub.status IN ({placeholders(filters.status)})"
                params.extend(enum_value(status) for status in filters.status)
            if filters.formats:
                sql += f" AND b.format IN ({placeholders(filters.formats)})"
                params.extend(enum_value(fmt) for fmt in filters.formats)
            if filters.authors:
                lowered = ", ".join("LOWER(?)" for _ in filters.authors)
                sql += f" AND LOWER(b.author) IN ({lowered})"
                params.extend(filters.authors)
            if filters.genres:
                lowered = ", ".join("LOWER(?)" for _ in filters.genres)
                sql += (
                    " AND b.id IN ("
                    "SELECT bg.book_id FROM book_genres bg "
                    "JOIN genres g ON bg.genre_id = g.id "
                    f"WHERE LOWER(g.name) IN ({lowered}))"
                )
                params.extend(filters.genres)
            if filters.isbn:
                sql += " AND LOWER(b.isbn) LIKE LOWER(?) ESCAPE '\\'"
                params.append(f"%{escape_like(filters.isbn)}%")
            if filters.asin:
                sql += " AND LOWER(b.asin) LIKE LOWER(?) ESCAPE '\\'"
                params.append(f"%{escape_like(filters.asin)}%")

        sql += f" ORDER BY {_ORDER_BY[_sort_option(sort)]}, ub.rowid DESC"

        rows = exec_select(self._db.get_handle(), sql, params)
        results = []
        for row in rows:
            book = row_to_book(row)
            results.append(
                BookDetails(
                    book=book,
                    genres=self._genres.get_book_genres(book.id),
                    series=row_to_series(row, prefix="s_") if row["s_id"] else None,
                    user_book=row_to_user_book(row, prefix="ub_"),
                    reading_count=self._reading_counts.get_reading_count(user_id, book.id),
                    is_owned=True,
                )
            )
        return results

    def update_user_book(self, user_id: str, book_id: str, **fields: Any) -> UserBook:
        """Update status, started_date, finished_date, and/or progress.

        Dates may be date, datetime, or ISO strings; None clears a date.
        Setting status to read forces progress to 100, whatever progress was
        passed alongside it.

        Raises:
            ValidationError: On an unknown field, a future date, or a finish
                date before the (new or stored) start date.
            NotFoundError: If the book is not in the user's collection.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update collection fields: {', '.join(sorted(unknown))}"
            )

        values: dict[str, Any] = {}
        if "started_date" in fields:
            values["started_date"] = coerce_date(fields["started_date"])
            validate_date_not_future(values["started_date"], "Start date")
        if "finished_date" in fields:
            values["finished_date"] = coerce_date(fields["finished_date"])
            validate_date_not_future(values["finished_date"], "Finish date")

        started = values.get("started_date")
        finished = values.get("finished_date")
        if started and finished and finished < started:
            raise ValidationError(DATE_ORDER_MESSAGE)

        existing = self.get_user_book(user_id, book_id)
        if existing is None:
            raise NotFoundError("UserBook not found")

        if "started_date" in values or "finished_date" in values:
            effective_start = values.get("started_date", existing.started_date)
            effective_finish = values.get("finished_date", existing.finished_date)
            if effective_start and effective_finish and effective_finish < effective_start:
                raise ValidationError(DATE_ORDER_MESSAGE)

        if "status" in fields:
            values["status"] = enum_value(fields["status"])
        if "progress" in fields:
            values["progress"] = fields["progress"]
        if values.get("status") == ReadingStatus.READ.value:
            values["progress"] = 100

        assignments = []
        params: list[Any] = []
        for name, value in values.items():
            assignments.append(f"{name} = ?")
            params.append(format_date(value) if name.endswith("_date") else value)
        assignments.append("updated_at = ?")
        params.append(format_timestamp(utc_now()))

        with self._db.transaction() as conn:
            count = exec_run(
                conn,
                f"UPDATE user_books SET {', '.join(assignments)} "
                "WHERE user_id = ? AND book_id = ?",
                [*params, user_id, book_id],
            )
            if count == 0:
                raise NotFoundError("UserBook not found")

        updated = self.get_user_book(user_id, book_id)
        assert updated is not None
        return updated

    def remove_book_from_user_collection(self, user_id: str, book_id: str) -> None:
        """Delete a collection entry. The book itself is untouched; missing entries are ignored."""
        with self._db.transaction() as conn:
            exec_run(
                conn,
                "DELETE FROM user_books WHERE user_id = ? AND book_id = ?",
                (user_id, book_id),
            )

    def bulk_update_user_books(self, user_id: str, book_ids: list[str], **fields: Any) -> int:
        """Apply update_user_book to each id. Failures are logged and skipped.

        Returns:
            The number of entries that were updated.
        """
        updated = 0
        for book_id in book_ids:
            try:
                self.update_user_book(user_id, book_id, **fields)
            except (CatalogError, sqlite3.Error) as exc:
                logger.warning("Failed to update book %s: %s", book_id, exc)
                continue
            updated += 1
        return updated

    def bulk_remove_user_books(self, user_id: str, book_ids: list[str]) -> int:
        """Remove each id from the collection. Failures are logged and skipped.

        Returns:
            The number of ids processed without error.
        """
        removed = 0
        for book_id in book_ids:
            try:
                self.remove_book_from_user_collection(user_id, book_id)
            except (CatalogError, sqlite3.Error) as exc:
                logger.warning("Failed to remove book %s: %s", book_id, exc)
                continue
            removed += 1
        return removed
