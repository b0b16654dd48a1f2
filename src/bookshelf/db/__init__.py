# ABOUTME: Public API for the Bookshelf data layer.
# ABOUTME: Exports the library container, persistence core, records, and errors.

from bookshelf.db.core import DB_KEY, DEFAULT_STORAGE_DIR, Database
from bookshelf.db.errors import (
    CatalogError,
    ConflictError,
    DatabaseInitError,
    NotFoundError,
    ValidationError,
)
from bookshelf.db.library import Library
from bookshelf.db.mapping import (
    Book,
    BookDetails,
    BookFilters,
    BookFormat,
    BookInput,
    Genre,
    ReadingCountLog,
    ReadingStatus,
    Series,
    SortOption,
    User,
    UserBook,
)
from bookshelf.db.storage import FileStorage, MemoryStorage, Storage

__all__ = [
    "DB_KEY",
    "DEFAULT_STORAGE_DIR",
    "Book",
    "BookDetails",
    "BookFilters",
    "BookFormat",
    "BookInput",
    "CatalogError",
    "ConflictError",
    "Database",
    "DatabaseInitError",
    "FileStorage",
    "Genre",
    "Library",
    "MemoryStorage",
    "NotFoundError",
    "ReadingCountLog",
    "ReadingStatus",
    "Series",
    "SortOption",
    "Storage",
    "User",
    "UserBook",
    "ValidationError",
]
