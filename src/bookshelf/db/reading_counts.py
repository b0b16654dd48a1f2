# ABOUTME: Reading-count log operations for the Bookshelf catalog.
# ABOUTME: Records completed reads of a book or series and tallies re-reads.

import sqlite3
import uuid
from datetime import date, datetime

from bookshelf.db.core import Database
from bookshelf.db.errors import ConflictError, ValidationError
from bookshelf.db.helpers import exec_count, exec_run, exec_select, exec_select_one
from bookshelf.db.mapping import (
    ReadingCountLog,
    format_date,
    format_timestamp,
    row_to_reading_count_log,
    utc_now,
)


class ReadingCountStore:
    """Typed access to the reading_count_logs table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def add_reading_count_log(
        self,
        user_id: str,
        book_id: str | None = None,
        series_id: str | None = None,
        read_date: date | datetime | None = None,
        *,
        log_id: str | None = None,
    ) -> ReadingCountLog:
        """Record one completed read of a book or a series.

        Exactly one of book_id/series_id must be given. Passing both is left to
        the storage check constraint, which raises sqlite3.IntegrityError.
        read_date defaults to today.

        Raises:
            ValidationError: If neither book_id nor series_id is given.
            ConflictError: If log_id is given and already recorded.
        """
        if not book_id and not series_id:
            raise ValidationError("Either bookId or seriesId must be provided")

        new_id = log_id or str(uuid.uuid4())
        with self._db.transaction() as conn:
            try:
                exec_run(
                    conn,
                    "INSERT INTO reading_count_logs "
                    "(id, user_id, book_id, series_id, read_date, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        new_id,
                        user_id,
                        book_id or None,
                        series_id or None,
                        format_date(read_date or date.today()),
                        format_timestamp(utc_now()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if "reading_count_logs.id" in str(exc):
                    raise ConflictError(f"Reading log {new_id} already exists") from exc
                raise

        row = exec_select_one(
            self._db.get_handle(), "SELECT * FROM reading_count_logs WHERE id = ?", (new_id,)
        )
        return row_to_reading_count_log(row)

    def get_reading_count(
        self, user_id: str, book_id: str | None = None, series_id: str | None = None
    ) -> int:
        """Count a user's logged reads of a book (or, failing that, a series).

        Returns 0 when neither id is given.
        """
        conn = self._db.get_handle()
        if book_id:
            return exec_count(
                conn,
                "SELECT COUNT(*) FROM reading_count_logs WHERE user_id = ? AND book_id = ?",
                (user_id, book_id),
            )
        if series_id:
            return exec_count(
                conn,
                "SELECT COUNT(*) FROM reading_count_logs WHERE user_id = ? AND series_id = ?",
                (user_id, series_id),
            )
        return 0

    def get_reading_count_logs(self, user_id: str) -> list[ReadingCountLog]:
        """List a user's logs, oldest read first."""
        rows = exec_select(
            self._db.get_handle(),
            "SELECT * FROM reading_count_logs WHERE user_id = ? "
            "ORDER BY read_date, created_at, rowid",
            (user_id,),
        )
        return [row_to_reading_count_log(row) for row in rows]
