# ABOUTME: Field-level validation rules shared by the entity operations.
# ABOUTME: Each check raises ValidationError instead of silently fixing the value.

import re
from datetime import date, datetime, time

from bookshelf.db.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 5000

USERNAME_MESSAGE = (
    "Username must be 3-50 characters and contain only letters, numbers, "
    "underscores, and hyphens"
)


def validate_username(username: str) -> None:
    """Require 3-50 characters from letters, digits, underscore, and hyphen."""
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(USERNAME_MESSAGE)
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(USERNAME_MESSAGE)


def validate_email(email: str | None) -> None:
    """Email is optional; when given it must look like local@domain.tld."""
    if not email:
        return
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address")


def validate_isbn(isbn: str | None) -> None:
    """ISBN is optional; its digits (separators ignored) must number 10 or 13.

    Only the check strips separators. The caller stores the string as given.
    """
    if not isbn:
        return
    digits = re.sub(r"\D", "", isbn)
    if len(digits) not in (10, 13):
        raise ValidationError("ISBN must be 10 or 13 digits")


def validate_asin(asin: str | None) -> None:
    """ASIN is optional; it must be exactly 10 uppercase letters or digits."""
    if not asin:
        return
    if not ASIN_PATTERN.match(asin):
        raise ValidationError("ASIN must be 10 alphanumeric characters")


def validate_description(description: str | None) -> None:
    """Descriptions are capped at 5000 characters."""
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer"
        )


def validate_date_not_future(value: date | datetime | None, field_name: str) -> None:
    """Reject dates later than the end of today in local time."""
    if value is None:
        return
    end_of_today = datetime.combine(date.today(), time.max)
    if isinstance(value, datetime):
        moment = value.astimezone().replace(tzinfo=None) if value.tzinfo else value
        if moment > end_of_today:
            raise ValidationError(f"{field_name} cannot be in the future")
    elif value > end_of_today.date():
        raise ValidationError(f"{field_name} cannot be in the future")


def require_text(value: str | None, field_name: str) -> str:
    """Trim a required text field and reject it if nothing is left."""
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValidationError(f"{field_name} is required")
    return trimmed
