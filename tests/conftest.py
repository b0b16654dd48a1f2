# ABOUTME: Shared pytest fixtures for Bookshelf tests.
# ABOUTME: Provides an in-memory library plus a sample user, books, and series.

from collections.abc import Iterator

import pytest

from bookshelf.db.library import Library
from bookshelf.db.mapping import Book, BookFormat, BookInput, Series, User
from bookshelf.db.storage import MemoryStorage


@pytest.fixture()
def storage() -> MemoryStorage:
    """Dict-backed storage shared by the library fixture."""
    return MemoryStorage()


@pytest.fixture()
def library(storage: MemoryStorage) -> Iterator[Library]:
    """An initialized library persisting to in-memory storage."""
    lib = Library.from_storage(storage)
    yield lib
    lib.close()


@pytest.fixture()
def user(library: Library) -> User:
    """The local reader profile."""
    return library.users.create_user("alice", "Alice", "alice@example.com")


@pytest.fixture()
def book(library: Library) -> Book:
    """A minimal book with only title and author."""
    return library.books.create_book(BookInput(title="1984", author="George Orwell"))


@pytest.fixture()
def series(library: Library) -> Series:
    """An empty series."""
    return library.series.create_series("Dune Chronicles", "Frank Herbert")


@pytest.fixture()
def dune(library: Library, series: Series) -> Book:
    """A fully-populated book that belongs to the Dune Chronicles."""
    return library.books.create_book(
        BookInput(
            title="Dune",
            author="Frank Herbert",
            isbn="978-0-441-17271-9",
            asin="B00B7NPRY8",
            series_id=series.id,
            position=1,
            publication_year=1965,
            pages=412,
            format=BookFormat.PHYSICAL,
            description="A desert planet and its spice.",
            genres=["Science Fiction", "Classics"],
        )
    )
