# ABOUTME: Persistence core that owns the single live SQLite handle.
# ABOUTME: Loads the database image from storage, applies the schema, and saves after every write.

import base64
import binascii
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from bookshelf.db.errors import DatabaseInitError
from bookshelf.db.schema import SCHEMA_V1
from bookshelf.db.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = Path.home() / ".bookshelf"
DB_KEY = "book-manager-db"

# Must stay a multiple of 3 so base64 chunks concatenate without padding.
PERSIST_CHUNK_SIZE = 3 * 8192


def _new_connection() -> sqlite3.Connection:
    """Open an empty in-memory connection."""
    return sqlite3.connect(":memory:")


def _configure(conn: sqlite3.Connection) -> None:
    """Set the row factory and pragmas every handle needs."""
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the schema has already been applied."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='users'")
    return cursor.fetchone() is not None


def _apply_schema(conn: sqlite3.Connection) -> None:
    """Execute the DDL to create all tables and indexes."""
    conn.executescript(SCHEMA_V1)


def encode_image(data: bytes, chunk_size: int = PERSIST_CHUNK_SIZE) -> str:
    """Base64-encode a database image chunk by chunk."""
    if chunk_size % 3:
        raise ValueError("chunk_size must be a multiple of 3")
    return "".join(
        base64.b64encode(data[start:start + chunk_size]).decode("ascii")
        for start in range(0, len(data), chunk_size)
    )


def decode_image(text: str) -> sqlite3.Connection:
    """Rebuild a live connection from a stored base64 image.

    Raises:
        binascii.Error: If the text is not valid base64.
        sqlite3.DatabaseError: If the decoded bytes are not a SQLite database.
    """
    data = base64.b64decode(text, validate=True)
    conn = _new_connection()
    try:
        conn.deserialize(data)
        _configure(conn)
        # deserialize() accepts any bytes; the first read is what fails on junk
        conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.DatabaseError:
        conn.close()
        raise
    return conn


class Database:
    """Owns the one live database handle for a session.

    The handle is an in-memory SQLite database whose full image is written to
    a key/value Storage after every mutation, and read back on initialize().
    """

    def __init__(self, storage: Storage, key: str = DB_KEY) -> None:
        self.storage = storage
        self.key = key
        self._conn: sqlite3.Connection | None = None
        self._depth = 0

    @property
    def is_initialized(self) -> bool:
        return self._conn is not None

    def initialize(self) -> None:
        """Load the stored database or create a fresh one. Idempotent.

        An unreadable stored image is discarded and replaced with an empty
        schema. Any other failure leaves the handle unset so the call can be
        retried.

        Raises:
            DatabaseInitError: If the handle could not be created.
        """
        if self.is_initialized:
            return

        try:
            conn: sqlite3.Connection | None = None
            saved = self.storage.get_item(self.key)
            if saved:
                try:
                    conn = decode_image(saved)
                except (binascii.Error, sqlite3.DatabaseError) as exc:
                    logger.error(
                        "Failed to load database from storage, creating a new one: %s", exc
                    )

            needs_save = conn is None
            if conn is None:
                conn = _new_connection()
                _configure(conn)
            if not _schema_exists(conn):
                _apply_schema(conn)
                needs_save = True

            self._conn = conn
            if needs_save:
                self.persist()
        except Exception as exc:
            self._conn = None
            raise DatabaseInitError(f"Failed to initialize database: {exc}") from exc

        logger.debug("Database initialized from storage key %s", self.key)

    def get_handle(self) -> sqlite3.Connection:
        """Return the live connection.

        Raises:
            DatabaseInitError: If initialize() has not completed.
        """
        if self._conn is None:
            raise DatabaseInitError("Database not initialized. Call initialize() first.")
        return self._conn

    def persist(self) -> None:
        """Serialize the whole database and write it under the storage key."""
        if self._conn is None:
            return
        if self._conn.in_transaction:
            self._conn.commit()
        self.storage.set_item(self.key, encode_image(self._conn.serialize()))

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a mutating operation: commit and persist on success, roll back on error.

        Nested uses join the outermost transaction, which alone commits and
        persists.
        """
        conn = self.get_handle()
        if self._depth:
            self._depth += 1
            try:
                yield conn
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
            self.persist()
        finally:
            self._depth = 0

    # --- Test seams ---

    def set_handle(self, conn: sqlite3.Connection | None) -> None:
        """Inject a connection (or None) in place of the current one."""
        if conn is not None:
            _configure(conn)
            if not _schema_exists(conn):
                _apply_schema(conn)
        self._conn = conn
        self._depth = 0

    def reset(self) -> None:
        """Forget the current handle without closing it."""
        self._conn = None
        self._depth = 0

    def close(self) -> None:
        """Close the live connection, if any."""
        if self._conn is not None:
            self._conn.close()
        self.reset()

    def clear_storage(self) -> None:
        """Delete the stored image and drop the handle; the next initialize() starts empty."""
        self.storage.remove_item(self.key)
        self.close()
