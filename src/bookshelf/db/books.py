# ABOUTME: Book operations for the Bookshelf catalog.
# ABOUTME: Create, fetch, list, and search books with genre/series/ownership details.

import sqlite3
import uuid

from bookshelf.db.core import Database
from bookshelf.db.errors import ConflictError
from bookshelf.db.genres import GenreStore
from bookshelf.db.helpers import escape_like, exec_run, exec_select, exec_select_one
from bookshelf.db.mapping import (
    SERIES_JOIN_COLUMNS,
    Book,
    BookDetails,
    BookInput,
    enum_value,
    format_timestamp,
    row_to_book,
    row_to_series,
    utc_now,
)
from bookshelf.db.user_books import is_owned
from bookshelf.db.validation import (
    require_text,
    validate_asin,
    validate_description,
    validate_isbn,
)


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class BookStore:
    """Typed CRUD and search for the books table."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._genres = GenreStore(db)

    def create_book(self, data: BookInput, *, book_id: str | None = None) -> Book:
        """Add a book to the catalog.

        Title and author are trimmed and must not be empty. ISBN and ASIN are
        checked for shape but stored as given (trimmed). When `data.genres` is
        non-empty it becomes the book's genre set.

        Args:
            data: The book's fields.
            book_id: Reuse a known id (imports); a new one is generated otherwise.

        Returns:
            The stored book.

        Raises:
            ValidationError: On a blank title/author, bad ISBN/ASIN, or an
                overlong description.
            ConflictError: If a book with the same title and author exists,
                ignoring case.
        """
        validate_isbn(data.isbn)
        validate_asin(data.asin)
        validate_description(data.description)
        title = require_text(data.title, "Title")
        author = require_text(data.author, "Author")

        if self.find_book(title, author) is not None:
            raise ConflictError("A book with this title and author already exists in the database")

        new_id = book_id or str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self._db.transaction() as conn:
            try:
                exec_run(
                    conn,
                    "INSERT INTO books ("
                    "id, title, author, isbn, asin, series_id, position, publication_year, "
                    "pages, format, cover_image_url, description, created_at, updated_at"
                    ") VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        new_id,
                        title,
                        author,
                        _strip_or_none(data.isbn),
                        _strip_or_none(data.asin),
                        data.series_id or None,
                        data.position or None,
                        data.publication_year or None,
                        data.pages,
                        enum_value(data.format) or None,
                        _strip_or_none(data.cover_image_url),
                        _strip_or_none(data.description),
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if "books.id" in str(exc):
                    raise ConflictError(f"Book with id {new_id} already exists") from exc
                raise

            if data.genres:
                self._genres.add_book_genres(new_id, data.genres)

        book = self.get_book(new_id)
        assert book is not None
        return book

    def get_book(self, book_id: str) -> Book | None:
        """Retrieve a book by id."""
        row = exec_select_one(self._db.get_handle(), "SELECT * FROM books WHERE id = ?", (book_id,))
        return row_to_book(row) if row else None

    def find_book(self, title: str, author: str) -> Book | None:
        """Retrieve a book by title and author, ignoring case and outer whitespace."""
        row = exec_select_one(
            self._db.get_handle(),
            "SELECT * FROM books WHERE LOWER(title) = LOWER(?) AND LOWER(author) = LOWER(?)",
            (title.strip(), author.strip()),
        )
        return row_to_book(row) if row else None

    def get_all_books(self) -> list[Book]:
        """Return all books, most recently created first."""
        rows = exec_select(
            self._db.get_handle(), "SELECT * FROM books ORDER BY created_at DESC, rowid DESC"
        )
        return [row_to_book(row) for row in rows]

    def search_books(self, query: str, user_id: str | None = None) -> list[BookDetails]:
        """Case-insensitive substring search across book and series fields.

        Matches title, author, ISBN, ASIN, and the linked series' name and
        author. An empty query matches every book. `is_owned` reflects
        whether `user_id` has each result in their collection.
        """
        term = f"%{escape_like(query.strip().lower())}%"
        rows = exec_select(
            self._db.get_handle(),
            f"SELECT b.*, {SERIES_JOIN_COLUMNS} "
            "FROM books b "
            "LEFT JOIN series s ON b.series_id = s.id "
            "WHERE LOWER(b.title) LIKE ? ESCAPE '\\' "
            "OR LOWER(b.author) LIKE ? ESCAPE '\\' "
            "OR LOWER(b.isbn) LIKE ? ESCAPE '\\' "
            "OR LOWER(b.asin) LIKE ? ESCAPE '\\' "
            "OR LOWER(s.name) LIKE ? ESCAPE '\\' "
            "OR LOWER(s.author) LIKE ? ESCAPE '\\' "
            "ORDER BY b.created_at DESC, b.rowid DESC",
            (term,) * 6,
        )

        conn = self._db.get_handle()
        results = []
        for row in rows:
            book = row_to_book(row)
            results.append(
                BookDetails(
                    book=book,
                    genres=self._genres.get_book_genres(book.id),
                    series=row_to_series(row, prefix="s_") if row["s_id"] else None,
                    is_owned=is_owned(conn, user_id, book.id),
                )
            )
        return results
