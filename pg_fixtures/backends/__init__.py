"""Record store implementations."""

from pg_fixtures.backends.base import RecordStore
from pg_fixtures.backends.memory import MemoryStore
from pg_fixtures.backends.postgres import PostgresStore

__all__ = ["RecordStore", "MemoryStore", "PostgresStore"]
