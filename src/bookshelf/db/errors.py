# ABOUTME: Exception hierarchy for the Bookshelf data layer.
# ABOUTME: Separates validation, conflict, not-found, and initialization failures.


class CatalogError(Exception):
    """Base class for errors raised by Bookshelf catalog operations."""


class ValidationError(CatalogError, ValueError):
    """Raised when input is rejected before anything is written."""


class ConflictError(CatalogError):
    """Raised when a write would duplicate an existing record or link."""


class NotFoundError(CatalogError, LookupError):
    """Raised when an update or link targets a record that does not exist."""


class DatabaseInitError(CatalogError, RuntimeError):
    """Raised when the database handle is missing or could not be created."""
