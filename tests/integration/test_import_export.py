# ABOUTME: Integration tests for exporting a populated library and importing it elsewhere.
# ABOUTME: Validates full round trips, idempotent re-imports, and merges into existing data.

from datetime import date

import pytest

from bookshelf.core.data_io import export_to_json, import_from_json
from bookshelf.db.library import Library
from bookshelf.db.mapping import BookFormat, BookInput, ReadingStatus
from bookshelf.db.storage import MemoryStorage


@pytest.fixture()
def populated() -> Library:
    """A library with a profile, a series, genres, a collection, and reading logs."""
    lib = Library.from_storage(MemoryStorage())
    alice = lib.users.create_user("alice", "Alice", "alice@example.com")
    series = lib.series.create_series("Foundation", "Isaac Asimov")

    foundation = lib.books.create_book(
        BookInput(
            title="Foundation",
            author="Isaac Asimov",
            isbn="9780553293357",
            series_id=series.id,
            position=1,
            publication_year=1951,
            pages=255,
            format=BookFormat.PHYSICAL,
            genres=["Science Fiction"],
        )
    )
    empire = lib.books.create_book(
        BookInput(
            title="Foundation and Empire",
            author="Isaac Asimov",
            series_id=series.id,
            position=2,
            genres=["Science Fiction", "Classics"],
        )
    )
    lib.books.create_book(BookInput(title="Beloved", author="Toni Morrison", asin="B00B9ZD7CS"))

    lib.user_books.add_book_to_user_collection(alice.id, foundation.id)
    lib.user_books.update_user_book(
        alice.id,
        foundation.id,
        status=ReadingStatus.READ,
        started_date=date(2022, 1, 3),
        finished_date=date(2022, 1, 20),
    )
    lib.user_books.add_book_to_user_collection(alice.id, empire.id)
    lib.user_books.update_user_book(
        alice.id, empire.id, status=ReadingStatus.CURRENTLY_READING, progress=40
    )
    lib.reading_counts.add_reading_count_log(
        alice.id, book_id=foundation.id, read_date=date(2022, 1, 20)
    )
    lib.reading_counts.add_reading_count_log(
        alice.id, series_id=series.id, read_date=date(2022, 6, 1)
    )
    return lib


def _snapshot(lib: Library) -> dict:
    """The parts of a library a round trip must preserve."""
    user = lib.users.get_first_user()
    shelf = lib.user_books.get_user_books(user.id, sort="title-az")
    return {
        "user": (user.username, user.display_name, user.email),
        "books": sorted(
            (b.title, b.author, b.isbn, b.asin, b.position, b.pages, b.format)
            for b in lib.books.get_all_books()
        ),
        "series": [(s.name, s.author) for s in lib.series.get_all_series()],
        "shelf": [
            (
                d.book.title,
                d.series.name if d.series else None,
                [g.name for g in d.genres],
                d.user_book.status,
                d.user_book.progress,
                d.user_book.started_date,
                d.user_book.finished_date,
                d.reading_count,
            )
            for d in shelf
        ],
        "logs": [
            (log.read_date, bool(log.book_id), bool(log.series_id))
            for log in lib.reading_counts.get_reading_count_logs(user.id)
        ],
    }


class TestRoundTrip:
    """Integration tests for export followed by import."""

    def test_into_empty_library(self, populated: Library) -> None:
        """Everything exported comes back the same in a fresh library."""
        text = export_to_json(populated)
        target = Library.from_storage(MemoryStorage())

        result = import_from_json(target, text)

        assert result.added == {
            "users": 1,
            "series": 1,
            "books": 3,
            "userBooks": 2,
            "readingCountLogs": 2,
        }
        assert _snapshot(target) == _snapshot(populated)

    def test_preserves_ids(self, populated: Library) -> None:
        target = Library.from_storage(MemoryStorage())
        import_from_json(target, export_to_json(populated))

        assert {b.id for b in target.books.get_all_books()} == {
            b.id for b in populated.books.get_all_books()
        }

    def test_reimport_is_idempotent(self, populated: Library) -> None:
        """Importing a library's own export skips every record."""
        before = _snapshot(populated)

        result = import_from_json(populated, export_to_json(populated))

        assert result.total_added == 0
        assert result.skipped == {
            "users": 1,
            "series": 1,
            "books": 3,
            "userBooks": 2,
            "readingCountLogs": 2,
        }
        assert _snapshot(populated) == before

    def test_merge_into_library_with_other_ids(self, populated: Library) -> None:
        """Records that exist under different ids are matched by name and linked up."""
        target = Library.from_storage(MemoryStorage())
        local_user = target.users.create_user("alice")
        target.series.create_series("foundation", "isaac asimov")
        existing = target.books.create_book(BookInput(title="FOUNDATION", author="Isaac Asimov"))

        result = import_from_json(target, export_to_json(populated))

        assert result.skipped == {"users": 1, "series": 1, "books": 1}
        assert target.statistics.get_book_count() == 3
        entry = target.user_books.get_user_book(local_user.id, existing.id)
        assert entry is not None
        assert entry.status is ReadingStatus.READ
        assert target.reading_counts.get_reading_count(local_user.id, book_id=existing.id) == 1
