"""FixtureSet - records collected for export, grouped by table."""

from collections.abc import Iterator
from typing import Any

from pg_fixtures.exceptions import MissingPrimaryKeyError
from pg_fixtures.models import Record
from pg_fixtures.naming import fixture_name


class FixtureSet:
    """
    Mapping of table name to fixture records.

    Each table bucket maps a synthetic record name (see
    :func:`pg_fixtures.naming.fixture_name`) to that record's attributes.
    Adding a record whose name is already present replaces the earlier
    attributes.

    Example:
        fixtures = FixtureSet()
        fixtures.add(author)
        fixtures["authors"]["author_00007"]  # {'id': 7, 'name': ...}
    """

    def __init__(self):
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}

    def add(self, record: Record) -> str:
        """
        Add a record under its synthetic name.

        Args:
            record: Record to add (attributes are copied)

        Returns:
            The record name used

        Raises:
            MissingPrimaryKeyError: If the record has no primary key value
        """
        if record.id is None:
            raise MissingPrimaryKeyError(record.table)
        name = fixture_name(record.table, record.id)
        self.set(record.table, name, dict(record.attributes))
        return name

    def set(self, table: str, name: str, attributes: dict[str, Any]) -> None:
        """Store attributes under table/name, replacing any previous entry."""
        self._tables.setdefault(table, {})[name] = attributes

    @property
    def tables(self) -> list[str]:
        """Table names in the order they were first touched."""
        return list(self._tables)

    def __getitem__(self, table: str) -> dict[str, dict[str, Any]]:
        return self._tables[table]

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return sum(len(records) for records in self._tables.values())

    def items(self):
        return self._tables.items()

    def names(self, table: str) -> list[str]:
        """Record names for a table (empty if the table was never touched)."""
        return list(self._tables.get(table, {}))

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Plain nested dict copy for serialization."""
        return {table: dict(records) for table, records in self._tables.items()}
