"""Persistence layer for database operations using SQLAlchemy.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - UserRepository, HelpRequestRepository, MatchRepository, MessageRepository

    # MatchStore implementation
    - SqlMatchStore

    # Seed data
    - load_seed_file(path) -> SeedData
    - apply_seed(store, seed) -> SeedData

Example usage:
    >>> from helpmatch.persistence import init_database, SqlMatchStore
    >>> init_database("sqlite:///./data/helpmatch.db")
    >>> store = SqlMatchStore()
    >>> store.get_match("r1__u2")
"""

# Database initialization and session management
from .database import close_database, get_engine, get_session, init_database

# Exceptions
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
    SeedFileError,
)

# Repository classes
from .repositories import HelpRequestRepository, MatchRepository, MessageRepository, UserRepository
from .seed import SeedData, apply_seed, load_seed_file
from .store import SqlMatchStore

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "UserRepository",
    "HelpRequestRepository",
    "MatchRepository",
    "MessageRepository",
    "SqlMatchStore",
    # Seed
    "SeedData",
    "load_seed_file",
    "apply_seed",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
    "SeedFileError",
]
