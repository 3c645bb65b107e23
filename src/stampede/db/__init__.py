"""Database layer."""

from stampede.db.session import Database, get_database, init_database
from stampede.db.tables import ApiKey, Base, LoadTest, User

__all__ = [
    "ApiKey",
    "Base",
    "Database",
    "LoadTest",
    "User",
    "get_database",
    "init_database",
]
