"""Persistence-specific exceptions."""


class PersistenceError(Exception):
    """Base exception for all persistence errors."""


class DatabaseNotReadyError(PersistenceError):
    """Raised when the local database cannot be opened."""
