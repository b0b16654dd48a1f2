# ABOUTME: Composition root that owns one Database and one store per entity.
# ABOUTME: Library.open() builds a file-backed, initialized library.

from pathlib import Path

from bookshelf.db.books import BookStore
from bookshelf.db.core import DEFAULT_STORAGE_DIR, Database
from bookshelf.db.genres import GenreStore
from bookshelf.db.reading_counts import ReadingCountStore
from bookshelf.db.series import SeriesStore
from bookshelf.db.statistics import Statistics
from bookshelf.db.storage import FileStorage, Storage
from bookshelf.db.user_books import UserBookStore
from bookshelf.db.users import UserStore


class Library:
    """All catalog operations bound to a single database handle."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.users = UserStore(db)
        self.books = BookStore(db)
        self.genres = GenreStore(db)
        self.series = SeriesStore(db)
        self.user_books = UserBookStore(db)
        self.reading_counts = ReadingCountStore(db)
        self.statistics = Statistics(db)

    @classmethod
    def from_storage(cls, storage: Storage) -> "Library":
        """Build and initialize a library over any Storage."""
        db = Database(storage)
        db.initialize()
        return cls(db)

    @classmethod
    def open(cls, data_dir: Path | None = None) -> "Library":
        """Open the library stored under `data_dir` (default ~/.bookshelf)."""
        return cls.from_storage(FileStorage(data_dir or DEFAULT_STORAGE_DIR))

    def close(self) -> None:
        self.db.close()
