"""Custom exceptions with helpful error messages."""

from typing import Any


class PgFixturesError(Exception):
    """Base exception for pg-fixtures errors."""

    pass


class InvalidSpecificationError(PgFixturesError):
    """Include specification has an unrecognized shape."""

    def __init__(self, spec: Any):
        self.spec = spec
        super().__init__(
            f"Unknown includes type: {spec!r} ({type(spec).__name__}).\n\n"
            f"Suggestions:\n"
            f"1. Use an association name: include='posts'\n"
            f"2. Use a list of siblings: include=['posts', 'profile']\n"
            f"3. Use a mapping to go deeper: include={{'posts': 'comments'}}"
        )


class SchemaNotFoundError(PgFixturesError):
    """Schema does not exist in database."""

    def __init__(self, schema: str):
        super().__init__(
            f"Schema '{schema}' not found in database.\n\n"
            f"Suggestions:\n"
            f"1. Check schema name spelling\n"
            f"2. Ensure schema exists: CREATE SCHEMA {schema};\n"
            f"3. Check database connection settings"
        )


class TableNotFoundError(PgFixturesError):
    """Table does not exist in schema."""

    def __init__(self, table: str, schema: str):
        super().__init__(
            f"Table '{table}' not found in schema '{schema}'.\n\n"
            f"Suggestions:\n"
            f"1. Check table name spelling\n"
            f"2. Use store.get_tables() to see available tables\n"
            f"3. Ensure table exists: CREATE TABLE {schema}.{table} (...);"
        )


class UnknownAssociationError(PgFixturesError):
    """Association name cannot be resolved from the table's foreign keys."""

    def __init__(self, table: str, name: str, available: list[str]):
        choices = ", ".join(sorted(available)) or "(none)"
        super().__init__(
            f"Table '{table}' has no association named '{name}'.\n\n"
            f"Available associations: {choices}\n\n"
            f"Suggestions:\n"
            f"1. belongs_to associations are named after the FK column "
            f"('author_id' -> 'author')\n"
            f"2. has_many associations are named after the child table ('posts')\n"
            f"3. Check that the foreign key constraint exists in the database"
        )


class FixtureFormatError(PgFixturesError):
    """Fixture file decoded to a shape that cannot be loaded into a table."""

    def __init__(self, path: str, found: str):
        super().__init__(
            f"Fixture file '{path}' must contain a list of rows or a mapping "
            f"of record names to rows, got {found}.\n\n"
            f"Suggestions:\n"
            f"1. Regenerate the file with dump_to_file()\n"
            f"2. Check template tags render to valid YAML"
        )


class MissingPrimaryKeyError(PgFixturesError):
    """Record has no primary key value to build a fixture name from."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(
            f"Cannot name a fixture record from table '{table}': it has no primary key value.\n\n"
            f"Suggestions:\n"
            f"1. Join tables are written with habtm_to_fixture(), not to_fixture()\n"
            f"2. Add a primary key to '{table}'\n"
            f"3. Use dump_to_file() to write keyless tables as a list of rows"
        )
