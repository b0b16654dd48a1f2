# ABOUTME: Series operations for the Bookshelf catalog.
# ABOUTME: Create/update/delete series and attach or detach member books.

import sqlite3
import uuid

from bookshelf.db.core import Database
from bookshelf.db.errors import ConflictError, NotFoundError, ValidationError
from bookshelf.db.genres import GenreStore
from bookshelf.db.helpers import exec_run, exec_select, exec_select_one
from bookshelf.db.mapping import (
    BookDetails,
    Series,
    format_timestamp,
    row_to_book,
    row_to_series,
    utc_now,
)
from bookshelf.db.user_books import is_owned
from bookshelf.db.validation import require_text

_UPDATABLE_FIELDS = {"name", "author"}


class SeriesStore:
    """Typed CRUD for the series table and book membership."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._genres = GenreStore(db)

    def create_series(self, name: str, author: str, *, series_id: str | None = None) -> Series:
        """Create a series.

        Raises:
            ValidationError: If name or author is blank.
            ConflictError: If a series with this name and author exists, ignoring case.
        """
        name = require_text(name, "Series name")
        author = require_text(author, "Series author")
        if self.find_series(name, author) is not None:
            raise ConflictError("A series with this name and author already exists")

        new_id = series_id or str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self._db.transaction() as conn:
            try:
                exec_run(
                    conn,
                    "INSERT INTO series (id, name, author, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (new_id, name, author, now, now),
                )
            except sqlite3.IntegrityError as exc:
                if "series.id" in str(exc):
                    raise ConflictError(f"Series with id {new_id} already exists") from exc
                raise

        series = self.get_series(new_id)
        assert series is not None
        return series

    def get_series(self, series_id: str) -> Series | None:
        """Retrieve a series by id."""
        row = exec_select_one(
            self._db.get_handle(), "SELECT * FROM series WHERE id = ?", (series_id,)
        )
        return row_to_series(row) if row else None

    def find_series(self, name: str, author: str) -> Series | None:
        """Retrieve a series by name and author, ignoring case and outer whitespace."""
        row = exec_select_one(
            self._db.get_handle(),
            "SELECT * FROM series WHERE LOWER(name) = LOWER(?) AND LOWER(author) = LOWER(?)",
            (name.strip(), author.strip()),
        )
        return row_to_series(row) if row else None

    def get_all_series(self) -> list[Series]:
        """List every series, alphabetically by name."""
        rows = exec_select(self._db.get_handle(), "SELECT * FROM series ORDER BY name")
        return [row_to_series(row) for row in rows]

    def get_series_books(self, series_id: str, user_id: str | None = None) -> list[BookDetails]:
        """Return a series' books ordered by position, then title."""
        conn = self._db.get_handle()
        rows = exec_select(
            conn,
            "SELECT * FROM books WHERE series_id = ? ORDER BY position, title",
            (series_id,),
        )
        results = []
        for row in rows:
            book = row_to_book(row)
            results.append(
                BookDetails(
                    book=book,
                    genres=self._genres.get_book_genres(book.id),
                    is_owned=is_owned(conn, user_id, book.id),
                )
            )
        return results

    def update_series(self, series_id: str, **fields: str) -> Series:
        """Rename a series or change its author.

        Raises:
            ValidationError: On an unknown field or a blank value.
            NotFoundError: If no series has this id.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update series fields: {', '.join(sorted(unknown))}")

        assignments = []
        values = []
        for name, value in fields.items():
            assignments.append(f"{name} = ?")
            values.append(require_text(value, f"Series {name}"))
        assignments.append("updated_at = ?")
        values.append(format_timestamp(utc_now()))

        with self._db.transaction() as conn:
            count = exec_run(
                conn,
                f"UPDATE series SET {', '.join(assignments)} WHERE id = ?",
                [*values, series_id],
            )
            if count == 0:
                raise NotFoundError("Series not found")

        updated = self.get_series(series_id)
        assert updated is not None
        return updated

    def delete_series(self, series_id: str) -> None:
        """Detach a series' books, then delete the series. Unknown ids are ignored."""
        with self._db.transaction() as conn:
            exec_run(
                conn,
                "UPDATE books SET series_id = NULL, position = NULL, updated_at = ? "
                "WHERE series_id = ?",
                (format_timestamp(utc_now()), series_id),
            )
            exec_run(conn, "DELETE FROM series WHERE id = ?", (series_id,))

    def add_book_to_series(
        self, book_id: str, series_id: str, position: int | None = None
    ) -> None:
        """Put a book in a series, or move it within the same series.

        Raises:
            ConflictError: If the book already belongs to a different series.
        """
        row = exec_select_one(
            self._db.get_handle(), "SELECT series_id FROM books WHERE id = ?", (book_id,)
        )
        if row and row["series_id"] and row["series_id"] != series_id:
            raise ConflictError("Book is already in another series. Remove it first.")

        with self._db.transaction() as conn:
            exec_run(
                conn,
                "UPDATE books SET series_id = ?, position = ?, updated_at = ? WHERE id = ?",
                (series_id, position or None, format_timestamp(utc_now()), book_id),
            )

    def remove_book_from_series(self, book_id: str) -> None:
        """Clear a book's series and position."""
        with self._db.transaction() as conn:
            exec_run(
                conn,
                "UPDATE books SET series_id = NULL, position = NULL, updated_at = ? WHERE id = ?",
                (format_timestamp(utc_now()), book_id),
            )
