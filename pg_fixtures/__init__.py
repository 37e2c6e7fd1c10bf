"""
pg-fixtures - YAML dumps and test fixtures for PostgreSQL tables

Provides helpers to dump a table to YAML, reload it, export query results
together with associated records as test fixtures, and write blank
fixture skeletons.
"""

from pg_fixtures.backends import MemoryStore, PostgresStore, RecordStore
from pg_fixtures.config import Config
from pg_fixtures.exceptions import (
    FixtureFormatError,
    InvalidSpecificationError,
    MissingPrimaryKeyError,
    PgFixturesError,
    SchemaNotFoundError,
    TableNotFoundError,
    UnknownAssociationError,
)
from pg_fixtures.exporter import FixtureExporter
from pg_fixtures.fixture_set import FixtureSet
from pg_fixtures.includes import FollowThen, IncludeSequence, Leaf, parse_includes
from pg_fixtures.models import ColumnInfo, ForeignKeyInfo, Record, TableInfo
from pg_fixtures.table_fixtures import TableFixtures

__version__ = "0.1.0"

__all__ = [
    "TableFixtures",
    "FixtureExporter",
    "FixtureSet",
    "Leaf",
    "IncludeSequence",
    "FollowThen",
    "parse_includes",
    "RecordStore",
    "MemoryStore",
    "PostgresStore",
    "Config",
    "Record",
    "TableInfo",
    "ColumnInfo",
    "ForeignKeyInfo",
    "PgFixturesError",
    "InvalidSpecificationError",
    "MissingPrimaryKeyError",
    "SchemaNotFoundError",
    "TableNotFoundError",
    "UnknownAssociationError",
    "FixtureFormatError",
]
