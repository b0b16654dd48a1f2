# ABOUTME: Typed records for the Bookshelf catalog and row -> record mapping.
# ABOUTME: Also holds the date/timestamp conversions used at the storage boundary.

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from bookshelf.db.errors import ValidationError


class ReadingStatus(str, Enum):
    TO_READ = "to-read"
    CURRENTLY_READING = "currently-reading"
    READ = "read"
    DIDNT_FINISH = "didnt-finish"


class BookFormat(str, Enum):
    DIGITAL = "digital"
    PHYSICAL = "physical"
    AUDIOBOOK = "audiobook"


class SortOption(str, Enum):
    LATEST_ADDED = "latest-added"
    TITLE_AZ = "title-az"
    AUTHOR_AZ = "author-az"
    YEAR = "year"
    DATE_STARTED = "date-started"
    DATE_FINISHED = "date-finished"


@dataclass
class User:
    id: str
    username: str
    display_name: str | None
    email: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class Series:
    id: str
    name: str
    author: str
    created_at: datetime
    updated_at: datetime


@dataclass
class Book:
    """A cataloged book. Genres live in a join table and are not part of the row."""

    id: str
    title: str
    author: str
    isbn: str | None
    asin: str | None
    series_id: str | None
    position: int | None
    publication_year: int | None
    pages: int | None
    format: BookFormat | None
    cover_image_url: str | None
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class Genre:
    id: str
    name: str
    created_at: datetime


@dataclass
class UserBook:
    """One user's copy of one book, with its reading state."""

    id: str
    user_id: str
    book_id: str
    status: ReadingStatus
    started_date: date | None
    finished_date: date | None
    progress: int
    added_at: datetime
    updated_at: datetime


@dataclass
class ReadingCountLog:
    """A completed read of exactly one book or one series."""

    id: str
    user_id: str
    book_id: str | None
    series_id: str | None
    read_date: date
    created_at: datetime


@dataclass
class BookDetails:
    """Denormalized view of a book for display: genres, series, and reading state."""

    book: Book
    genres: list[Genre] = field(default_factory=list)
    series: Series | None = None
    user_book: UserBook | None = None
    reading_count: int | None = None
    is_owned: bool = False


@dataclass
class BookInput:
    """Fields accepted when creating a book."""

    title: str
    author: str
    isbn: str | None = None
    asin: str | None = None
    series_id: str | None = None
    position: int | None = None
    publication_year: int | None = None
    pages: int | None = None
    format: BookFormat | str | None = None
    cover_image_url: str | None = None
    description: str | None = None
    genres: list[str] | None = None


@dataclass
class BookFilters:
    """Collection filters. Each dimension is ANDed; empty means unrestricted."""

    status: list[ReadingStatus | str] = field(default_factory=list)
    formats: list[BookFormat | str] = field(default_factory=list)
    authors: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    isbn: str | None = None
    asin: str | None = None


# --- Conversions ---


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_date(value: date | datetime | None) -> str | None:
    """Render a calendar date as YYYY-MM-DD for storage."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_date(value: str | None) -> date | None:
    """Parse a stored YYYY-MM-DD date; unparseable text reads as missing."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def coerce_date(value: Any) -> date | None:
    """Accept a date, a datetime, or an ISO-8601 string and return a date.

    Values carrying a UTC offset are converted to local time before the date
    is taken.

    Raises:
        ValidationError: If a string cannot be read as an ISO date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _local_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(f"Invalid date: {value!r}") from exc
        return _local_date(moment)
    raise ValidationError(f"Invalid date: {value!r}")


def _local_date(moment: datetime) -> date:
    return moment.astimezone().date() if moment.tzinfo else moment.date()


def enum_value(value: Any) -> Any:
    """Unwrap an Enum member to the plain value stored in SQL."""
    return value.value if isinstance(value, Enum) else value


def parse_book_format(value: Any) -> BookFormat | None:
    """Read a stored format, treating unknown values as missing."""
    if not value or not isinstance(value, str):
        return None
    try:
        return BookFormat(value)
    except ValueError:
        return None


# --- Row mapping ---


def row_to_user(row: Any) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        display_name=row["display_name"] or None,
        email=row["email"] or None,
        created_at=parse_timestamp(row["created_at"]) or utc_now(),
        updated_at=parse_timestamp(row["updated_at"]) or utc_now(),
    )


def row_to_series(row: Any, prefix: str = "") -> Series:
    """Convert a series row. `prefix` selects aliased columns from a join."""
    return Series(
        id=row[f"{prefix}id"],
        name=row[f"{prefix}name"],
        author=row[f"{prefix}author"],
        created_at=parse_timestamp(row[f"{prefix}created_at"]) or utc_now(),
        updated_at=parse_timestamp(row[f"{prefix}updated_at"]) or utc_now(),
    )


def row_to_book(row: Any) -> Book:
    return Book(
        id=row["id"],
        title=row["title"],
        author=row["author"],
        isbn=row["isbn"] or None,
        asin=row["asin"] or None,
        series_id=row["series_id"] or None,
        position=row["position"],
        publication_year=row["publication_year"],
        pages=row["pages"],
        format=parse_book_format(row["format"]),
        cover_image_url=row["cover_image_url"] or None,
        description=row["description"] or None,
        created_at=parse_timestamp(row["created_at"]) or utc_now(),
        updated_at=parse_timestamp(row["updated_at"]) or utc_now(),
    )


def row_to_genre(row: Any) -> Genre:
    return Genre(
        id=row["id"],
        name=row["name"],
        created_at=parse_timestamp(row["created_at"]) or utc_now(),
    )


def row_to_user_book(row: Any, prefix: str = "") -> UserBook:
    """Convert a user_books row. `prefix` selects aliased columns from a join."""
    return UserBook(
        id=row[f"{prefix}id"],
        user_id=row[f"{prefix}user_id"],
        book_id=row[f"{prefix}book_id"],
        status=ReadingStatus(row[f"{prefix}status"]),
        started_date=parse_date(row[f"{prefix}started_date"]),
        finished_date=parse_date(row[f"{prefix}finished_date"]),
        progress=row[f"{prefix}progress"],
        added_at=parse_timestamp(row[f"{prefix}added_at"]) or utc_now(),
        updated_at=parse_timestamp(row[f"{prefix}updated_at"]) or utc_now(),
    )


def row_to_reading_count_log(row: Any) -> ReadingCountLog:
    return ReadingCountLog(
        id=row["id"],
        user_id=row["user_id"],
        book_id=row["book_id"] or None,
        series_id=row["series_id"] or None,
        read_date=parse_date(row["read_date"]) or utc_now().date(),
        created_at=parse_timestamp(row["created_at"]) or utc_now(),
    )


# Aliased series columns for LEFT JOINs; read back with row_to_series(row, prefix="s_").
SERIES_JOIN_COLUMNS = (
    "s.id AS s_id, s.name AS s_name, s.author AS s_author, "
    "s.created_at AS s_created_at, s.updated_at AS s_updated_at"
)

USER_BOOK_JOIN_COLUMNS = (
    "ub.id AS ub_id, ub.user_id AS ub_user_id, ub.book_id AS ub_book_id, "
    "ub.status AS ub_status, ub.started_date AS ub_started_date, "
    "ub.finished_date AS ub_finished_date, ub.progress AS ub_progress, "
    "ub.added_at AS ub_added_at, ub.updated_at AS ub_updated_at"
)
