# ABOUTME: User profile operations for the Bookshelf catalog.
# ABOUTME: Create, look up, and update local reader profiles.

import sqlite3
import uuid

from bookshelf.db.core import Database
from bookshelf.db.errors import ConflictError, NotFoundError, ValidationError
from bookshelf.db.helpers import exec_run, exec_select_one
from bookshelf.db.mapping import User, format_timestamp, row_to_user, utc_now
from bookshelf.db.validation import validate_email, validate_username

_UPDATABLE_FIELDS = {"display_name", "email"}


class UserStore:
    """Typed CRUD for the users table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def create_user(
        self,
        username: str,
        display_name: str | None = None,
        email: str | None = None,
        *,
        user_id: str | None = None,
    ) -> User:
        """Create a user profile.

        Args:
            username: 3-50 characters of letters, digits, `_` or `-`.
            display_name: Optional name to show instead of the username.
            email: Optional email address.
            user_id: Reuse a known id (imports); a new one is generated otherwise.

        Raises:
            ValidationError: If the username or email is malformed.
            ConflictError: If the username is taken, ignoring case.
        """
        validate_username(username)
        validate_email(email)

        if self.get_user_by_username(username) is not None:
            raise ConflictError("This username is already taken. Please choose another.")

        new_id = user_id or str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self._db.transaction() as conn:
            try:
                exec_run(
                    conn,
                    "INSERT INTO users (id, username, display_name, email, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (new_id, username, display_name or None, email or None, now, now),
                )
            except sqlite3.IntegrityError as exc:
                if "users.id" in str(exc):
                    raise ConflictError(f"User with id {new_id} already exists") from exc
                raise

        user = self.get_user(new_id)
        assert user is not None
        return user

    def get_user(self, user_id: str) -> User | None:
        """Retrieve a user by id."""
        row = exec_select_one(self._db.get_handle(), "SELECT * FROM users WHERE id = ?", (user_id,))
        return row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        """Retrieve a user by username, ignoring case."""
        row = exec_select_one(
            self._db.get_handle(),
            "SELECT * FROM users WHERE LOWER(username) = LOWER(?)",
            (username,),
        )
        return row_to_user(row) if row else None

    def get_first_user(self) -> User | None:
        """Return the earliest-created profile, which is the local one in practice."""
        row = exec_select_one(
            self._db.get_handle(), "SELECT * FROM users ORDER BY created_at, rowid LIMIT 1"
        )
        return row_to_user(row) if row else None

    def update_user(self, user_id: str, **fields: str | None) -> User:
        """Update display_name and/or email. Empty values clear the field.

        Raises:
            ValidationError: On an unknown field or malformed email.
            NotFoundError: If no user has this id.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update user fields: {', '.join(sorted(unknown))}")
        if "email" in fields:
            validate_email(fields["email"])

        assignments = [f"{name} = ?" for name in fields]
        values: list[str | None] = [value or None for value in fields.values()]
        assignments.append("updated_at = ?")
        values.append(format_timestamp(utc_now()))

        with self._db.transaction() as conn:
            count = exec_run(
                conn,
                f"UPDATE users SET {', '.join(assignments)} WHERE id = ?",
                [*values, user_id],
            )
            if count == 0:
                raise NotFoundError("User not found")

        updated = self.get_user(user_id)
        assert updated is not None
        return updated
