"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError for easy catching.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid or empty database URL
    - Database file not accessible
    - Session requested before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an update targets a record that does not exist.

    Lookups return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a unique or primary key constraint is violated.

    The match store treats a violation on insert as a lost race against a
    concurrent writer and retries against the winner's row.
    """

    pass


class SeedFileError(PersistenceError):
    """Raised when a seed file cannot be read or does not validate."""

    pass
