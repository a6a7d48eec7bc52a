"""SQLite-backed persistence adapters for domain ports."""

from .sqlite_application_history import SQLiteApplicationHistory

__all__ = [
    "SQLiteApplicationHistory",
]
