# ABOUTME: Aggregate counts over the Bookshelf catalog.
# ABOUTME: Unknown ids count as zero rather than raising.

from bookshelf.db.core import Database
from bookshelf.db.helpers import exec_count


class Statistics:
    def __init__(self, db: Database) -> None:
        self._db = db

    def get_book_count(self) -> int:
        return exec_count(self._db.get_handle(), "SELECT COUNT(*) FROM books")

    def get_user_book_count(self, user_id: str) -> int:
        return exec_count(
            self._db.get_handle(), "SELECT COUNT(*) FROM user_books WHERE user_id = ?", (user_id,)
        )

    def get_user_series_count(self, user_id: str) -> int:
        """Distinct series among the books in a user's collection."""
        return exec_count(
            self._db.get_handle(),
            "SELECT COUNT(DISTINCT b.series_id) FROM user_books ub "
            "JOIN books b ON ub.book_id = b.id "
            "WHERE ub.user_id = ? AND b.series_id IS NOT NULL",
            (user_id,),
        )

    def get_series_book_count(self, series_id: str) -> int:
        return exec_count(
            self._db.get_handle(), "SELECT COUNT(*) FROM books WHERE series_id = ?", (series_id,)
        )
