# ABOUTME: Genre operations for the Bookshelf catalog.
# ABOUTME: Case-insensitive genre reuse and replace-style book/genre linking.

import uuid

from bookshelf.db.core import Database
from bookshelf.db.errors import ValidationError
from bookshelf.db.helpers import exec_run, exec_select, exec_select_one
from bookshelf.db.mapping import Genre, format_timestamp, row_to_genre, utc_now

MAX_GENRE_NAME_LENGTH = 255
MAX_GENRES_PER_BOOK = 20


class GenreStore:
    """Genres and the book_genres junction table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_or_create_genre(self, name: str) -> Genre:
        """Return the genre matching `name` (ignoring case), creating it if needed.

        The name is trimmed and cut to 255 characters first.
        """
        trimmed = name.strip()[:MAX_GENRE_NAME_LENGTH]
        if not trimmed:
            raise ValidationError("Genre name is required")

        row = exec_select_one(
            self._db.get_handle(),
            "SELECT * FROM genres WHERE LOWER(name) = LOWER(?)",
            (trimmed,),
        )
        if row:
            return row_to_genre(row)

        genre_id = str(uuid.uuid4())
        with self._db.transaction() as conn:
            exec_run(
                conn,
                "INSERT INTO genres (id, name, created_at) VALUES (?, ?, ?)",
                (genre_id, trimmed, format_timestamp(utc_now())),
            )
        row = exec_select_one(
            self._db.get_handle(), "SELECT * FROM genres WHERE id = ?", (genre_id,)
        )
        return row_to_genre(row)

    def add_book_genres(self, book_id: str, names: list[str]) -> None:
        """Replace a book's genres with the first 20 of `names`.

        Names past the twentieth are dropped without error, and blank names
        are skipped.
        """
        with self._db.transaction() as conn:
            exec_run(conn, "DELETE FROM book_genres WHERE book_id = ?", (book_id,))
            for name in names[:MAX_GENRES_PER_BOOK]:
                if not name or not name.strip():
                    continue
                genre = self.get_or_create_genre(name)
                exec_run(
                    conn,
                    "INSERT OR IGNORE INTO book_genres (id, book_id, genre_id) VALUES (?, ?, ?)",
                    (str(uuid.uuid4()), book_id, genre.id),
                )

    def get_book_genres(self, book_id: str) -> list[Genre]:
        """Get all genres for a book, alphabetically sorted."""
        rows = exec_select(
            self._db.get_handle(),
            "SELECT g.* FROM genres g "
            "JOIN book_genres bg ON g.id = bg.genre_id "
            "WHERE bg.book_id = ? "
            "ORDER BY g.name",
            (book_id,),
        )
        return [row_to_genre(row) for row in rows]

    def get_book_genre_names(self, book_id: str) -> list[str]:
        return [genre.name for genre in self.get_book_genres(book_id)]

    def get_all_genres(self) -> list[Genre]:
        """List every genre, alphabetically sorted."""
        rows = exec_select(self._db.get_handle(), "SELECT * FROM genres ORDER BY name")
        return [row_to_genre(row) for row in rows]
