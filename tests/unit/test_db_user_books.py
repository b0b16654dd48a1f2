# ABOUTME: Unit tests for collection entries linking users to books.
# ABOUTME: Validates status/progress rules, date checks, filters, sorting, and bulk updates.

import sqlite3
from datetime import date, datetime, time, timedelta, timezone

import pytest

from bookshelf.db.errors import ConflictError, NotFoundError, ValidationError
from bookshelf.db.library import Library
from bookshelf.db.mapping import (
    Book,
    BookFilters,
    BookFormat,
    BookInput,
    ReadingStatus,
    SortOption,
    User,
)

TOMORROW = date.today() + timedelta(days=1)


@pytest.fixture()
def shelf(library: Library, user: User) -> dict[str, Book]:
    """Three books in alice's collection, added in the order listed."""
    inputs = [
        BookInput(
            title="Neuromancer",
            author="William Gibson",
            isbn="9780441569595",
            publication_year=1984,
            format=BookFormat.DIGITAL,
            genres=["Cyberpunk"],
        ),
        BookInput(
            title="Emma",
            author="Jane Austen",
            asin="B008476HBM",
            publication_year=1815,
            format=BookFormat.PHYSICAL,
            genres=["Classics", "Romance"],
        ),
        BookInput(
            title="Count Zero",
            author="William Gibson",
            publication_year=1986,
            format=BookFormat.AUDIOBOOK,
            genres=["Cyberpunk"],
        ),
    ]
    books = {}
    for data in inputs:
        created = library.books.create_book(data)
        library.user_books.add_book_to_user_collection(user.id, created.id)
        books[created.title] = created
    return books


def _titles(details) -> list[str]:
    return [d.book.title for d in details]


class TestAddToCollection:
    """Tests for UserBookStore.add_book_to_user_collection."""

    def test_defaults(self, library: Library, user: User, book: Book) -> None:
        """New entries start as to-read with no progress or dates."""
        entry = library.user_books.add_book_to_user_collection(user.id, book.id)

        assert entry.status is ReadingStatus.TO_READ
        assert entry.progress == 0
        assert entry.started_date is None
        assert entry.finished_date is None
        assert library.user_books.get_user_book(user.id, book.id) == entry

    def test_duplicate_conflicts(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(ConflictError, match="already in your collection"):
            library.user_books.add_book_to_user_collection(user.id, book.id)

    def test_unknown_user(self, library: Library, book: Book) -> None:
        with pytest.raises(NotFoundError, match="User not found"):
            library.user_books.add_book_to_user_collection("missing", book.id)

    def test_unknown_book(self, library: Library, user: User) -> None:
        with pytest.raises(NotFoundError, match="Book not found"):
            library.user_books.add_book_to_user_collection(user.id, "missing")

    def test_get_missing_entry(self, library: Library, user: User, book: Book) -> None:
        assert library.user_books.get_user_book(user.id, book.id) is None


class TestUpdateUserBook:
    """Tests for UserBookStore.update_user_book."""

    def test_reading_lifecycle(self, library: Library, user: User, book: Book) -> None:
        """Start reading, make progress, then finish."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        started = date.today() - timedelta(days=10)

        entry = library.user_books.update_user_book(
            user.id,
            book.id,
            status=ReadingStatus.CURRENTLY_READING,
            started_date=started,
            progress=45,
        )
        assert entry.status is ReadingStatus.CURRENTLY_READING
        assert entry.started_date == started
        assert entry.progress == 45

        entry = library.user_books.update_user_book(
            user.id, book.id, status="read", finished_date=date.today()
        )
        assert entry.status is ReadingStatus.READ
        assert entry.progress == 100
        assert entry.finished_date == date.today()
        assert entry.started_date == started

    def test_read_forces_full_progress(self, library: Library, user: User, book: Book) -> None:
        """Marking a book read sets progress to 100 even if another value is passed."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        entry = library.user_books.update_user_book(
            user.id, book.id, status=ReadingStatus.READ, progress=10
        )
        assert entry.progress == 100

    def test_partial_progress_on_read_book_rejected(
        self, library: Library, user: User, book: Book
    ) -> None:
        """A read book cannot drop below 100% without a status change."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        library.user_books.update_user_book(user.id, book.id, status=ReadingStatus.READ)
        with pytest.raises(sqlite3.IntegrityError):
            library.user_books.update_user_book(user.id, book.id, progress=50)

    def test_progress_out_of_range(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(sqlite3.IntegrityError):
            library.user_books.update_user_book(user.id, book.id, progress=101)

    def test_accepts_iso_strings(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        entry = library.user_books.update_user_book(
            user.id, book.id, started_date="2024-03-01", finished_date="2024-03-09T18:30:00"
        )
        assert entry.started_date == date(2024, 3, 1)
        assert entry.finished_date == date(2024, 3, 9)

    def test_none_clears_date(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        library.user_books.update_user_book(user.id, book.id, started_date=date(2024, 1, 1))
        entry = library.user_books.update_user_book(user.id, book.id, started_date=None)
        assert entry.started_date is None

    @pytest.mark.parametrize(
        ("field", "message"),
        [("started_date", "Start date"), ("finished_date", "Finish date")],
    )
    def test_future_dates_rejected(
        self, library: Library, user: User, book: Book, field: str, message: str
    ) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(ValidationError, match=f"{message} cannot be in the future"):
            library.user_books.update_user_book(user.id, book.id, **{field: TOMORROW})

    def test_finish_before_start_same_call(
        self, library: Library, user: User, book: Book
    ) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(ValidationError, match="Start date must be prior to finish date"):
            library.user_books.update_user_book(
                user.id, book.id, started_date=date(2024, 5, 2), finished_date=date(2024, 5, 1)
            )

    def test_finish_before_stored_start(self, library: Library, user: User, book: Book) -> None:
        """The finish date is also checked against a start date saved earlier."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        library.user_books.update_user_book(user.id, book.id, started_date=date(2024, 5, 2))
        with pytest.raises(ValidationError, match="prior to finish date"):
            library.user_books.update_user_book(user.id, book.id, finished_date=date(2024, 5, 1))

    def test_start_after_stored_finish(self, library: Library, user: User, book: Book) -> None:
        """A start date later than a finish date saved earlier is rejected."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        library.user_books.update_user_book(user.id, book.id, finished_date=date(2024, 5, 1))
        with pytest.raises(ValidationError, match="prior to finish date"):
            library.user_books.update_user_book(user.id, book.id, started_date=date(2024, 5, 2))

    def test_finish_without_start(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        entry = library.user_books.update_user_book(
            user.id, book.id, finished_date=date(2024, 5, 1)
        )
        assert entry.started_date is None
        assert entry.finished_date == date(2024, 5, 1)

    def test_offset_date_checked_in_local_time(
        self, library: Library, user: User, book: Book
    ) -> None:
        """An instant that is already tomorrow locally is in the future at any offset."""
        library.user_books.add_book_to_user_collection(user.id, book.id)
        moment = datetime.combine(TOMORROW, time(0, 30)).astimezone()
        written = moment.astimezone(timezone(timedelta(hours=-12))).isoformat()
        with pytest.raises(ValidationError, match="Start date cannot be in the future"):
            library.user_books.update_user_book(user.id, book.id, started_date=written)

    def test_same_day_start_and_finish(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        entry = library.user_books.update_user_book(
            user.id, book.id, started_date=date(2024, 5, 1), finished_date=date(2024, 5, 1)
        )
        assert entry.started_date == entry.finished_date

    def test_missing_entry(self, library: Library, user: User, book: Book) -> None:
        with pytest.raises(NotFoundError, match="UserBook not found"):
            library.user_books.update_user_book(user.id, book.id, progress=5)

    def test_unknown_field(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(ValidationError):
            library.user_books.update_user_book(user.id, book.id, rating=5)

    def test_invalid_date_string(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        with pytest.raises(ValidationError, match="Invalid date"):
            library.user_books.update_user_book(user.id, book.id, started_date="last week")


class TestRemoveFromCollection:
    """Tests for remove_book_from_user_collection."""

    def test_removes_entry_keeps_book(self, library: Library, user: User, book: Book) -> None:
        library.user_books.add_book_to_user_collection(user.id, book.id)
        library.user_books.remove_book_from_user_collection(user.id, book.id)

        assert library.user_books.get_user_book(user.id, book.id) is None
        assert library.books.get_book(book.id) is not None

    def test_missing_entry_is_noop(self, library: Library, user: User, book: Book) -> None:
        library.user_books.remove_book_from_user_collection(user.id, book.id)


class TestGetUserBooks:
    """Tests for UserBookStore.get_user_books."""

    def test_default_sort_latest_added(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        details = library.user_books.get_user_books(user.id)
        assert _titles(details) == ["Count Zero", "Emma", "Neuromancer"]
        assert all(d.is_owned for d in details)
        assert all(d.reading_count == 0 for d in details)

    def test_details_include_genres_and_series(
        self, library: Library, user: User, dune: Book
    ) -> None:
        library.user_books.add_book_to_user_collection(user.id, dune.id)
        [details] = library.user_books.get_user_books(user.id)

        assert details.series is not None
        assert details.series.name == "Dune Chronicles"
        assert [g.name for g in details.genres] == ["Classics", "Science Fiction"]
        assert details.user_book.book_id == dune.id

    def test_filter_status(self, library: Library, user: User, shelf: dict[str, Book]) -> None:
        library.user_books.update_user_book(
            user.id, shelf["Emma"].id, status=ReadingStatus.CURRENTLY_READING
        )
        filters = BookFilters(status=[ReadingStatus.CURRENTLY_READING])
        assert _titles(library.user_books.get_user_books(user.id, filters)) == ["Emma"]

    def test_filter_author_ignores_case(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        filters = BookFilters(authors=["william gibson"])
        titles = _titles(library.user_books.get_user_books(user.id, filters, SortOption.TITLE_AZ))
        assert titles == ["Count Zero", "Neuromancer"]

    def test_filter_format(self, library: Library, user: User, shelf: dict[str, Book]) -> None:
        filters = BookFilters(formats=[BookFormat.DIGITAL, "audiobook"])
        titles = _titles(library.user_books.get_user_books(user.id, filters, "title-az"))
        assert titles == ["Count Zero", "Neuromancer"]

    def test_filter_genre(self, library: Library, user: User, shelf: dict[str, Book]) -> None:
        filters = BookFilters(genres=["romance"])
        assert _titles(library.user_books.get_user_books(user.id, filters)) == ["Emma"]

    def test_filter_isbn_and_asin_substring(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        by_isbn = library.user_books.get_user_books(user.id, BookFilters(isbn="0441569"))
        by_asin = library.user_books.get_user_books(user.id, BookFilters(asin="b008476"))
        assert _titles(by_isbn) == ["Neuromancer"]
        assert _titles(by_asin) == ["Emma"]

    def test_filters_are_anded(self, library: Library, user: User, shelf: dict[str, Book]) -> None:
        """Each filter dimension narrows the result further."""
        filters = BookFilters(authors=["William Gibson"], formats=[BookFormat.PHYSICAL])
        assert library.user_books.get_user_books(user.id, filters) == []

    @pytest.mark.parametrize(
        ("sort", "expected"),
        [
            (SortOption.TITLE_AZ, ["Count Zero", "Emma", "Neuromancer"]),
            (SortOption.AUTHOR_AZ, ["Emma", "Count Zero", "Neuromancer"]),
            (SortOption.YEAR, ["Count Zero", "Neuromancer", "Emma"]),
        ],
    )
    def test_sorts(
        self,
        library: Library,
        user: User,
        shelf: dict[str, Book],
        sort: SortOption,
        expected: list[str],
    ) -> None:
        """Ties within a sort key fall back to the most recently added entry."""
        assert _titles(library.user_books.get_user_books(user.id, sort=sort)) == expected

    def test_sort_by_date_started(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        library.user_books.update_user_book(user.id, shelf["Emma"].id, started_date="2024-01-01")
        library.user_books.update_user_book(
            user.id, shelf["Neuromancer"].id, started_date="2024-06-01"
        )
        details = library.user_books.get_user_books(user.id, sort=SortOption.DATE_STARTED)
        assert _titles(details)[:2] == ["Neuromancer", "Emma"]

    def test_unknown_sort_falls_back(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        details = library.user_books.get_user_books(user.id, sort="most-loved")
        assert _titles(details) == ["Count Zero", "Emma", "Neuromancer"]

    def test_reading_count_included(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        emma = shelf["Emma"]
        library.reading_counts.add_reading_count_log(user.id, book_id=emma.id)
        library.reading_counts.add_reading_count_log(user.id, book_id=emma.id)

        counts = {
            d.book.title: d.reading_count for d in library.user_books.get_user_books(user.id)
        }
        assert counts == {"Count Zero": 0, "Emma": 2, "Neuromancer": 0}

    def test_other_users_entries_excluded(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        bob = library.users.create_user("bob")
        assert library.user_books.get_user_books(bob.id) == []


class TestBulkOperations:
    """Tests for bulk_update_user_books and bulk_remove_user_books."""

    def test_bulk_update_skips_failures(
        self, library: Library, user: User, shelf: dict[str, Book], book: Book
    ) -> None:
        """An id outside the collection is skipped; the others are updated."""
        ids = [shelf["Emma"].id, book.id, shelf["Neuromancer"].id]
        updated = library.user_books.bulk_update_user_books(
            user.id, ids, status=ReadingStatus.DIDNT_FINISH
        )

        assert updated == 2
        statuses = {
            d.book.title: d.user_book.status for d in library.user_books.get_user_books(user.id)
        }
        assert statuses["Emma"] is ReadingStatus.DIDNT_FINISH
        assert statuses["Neuromancer"] is ReadingStatus.DIDNT_FINISH
        assert statuses["Count Zero"] is ReadingStatus.TO_READ

    def test_bulk_update_logs_failures(
        self,
        library: Library,
        user: User,
        shelf: dict[str, Book],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        library.user_books.bulk_update_user_books(user.id, ["missing"], progress=10)
        assert "Failed to update book missing" in caplog.text

    def test_bulk_remove(self, library: Library, user: User, shelf: dict[str, Book]) -> None:
        ids = [shelf["Emma"].id, shelf["Count Zero"].id]
        removed = library.user_books.bulk_remove_user_books(user.id, ids)

        assert removed == 2
        assert _titles(library.user_books.get_user_books(user.id)) == ["Neuromancer"]

    def test_bulk_remove_ignores_unknown_ids(
        self, library: Library, user: User, shelf: dict[str, Book]
    ) -> None:
        """An unknown id among valid ones does not stop the valid removals."""
        ids = [shelf["Emma"].id, "nonexistent", shelf["Count Zero"].id]
        library.user_books.bulk_remove_user_books(user.id, ids)

        assert _titles(library.user_books.get_user_books(user.id)) == ["Neuromancer"]
