"""Memory backend - in-memory store for testing without database."""

import copy
from typing import Any

from pg_fixtures.backends.base import RecordStore
from pg_fixtures.exceptions import TableNotFoundError
from pg_fixtures.models import Record, TableInfo


class MemoryStore(RecordStore):
    """
    In-memory record store for testing fixture helpers without database.

    Simulates database behavior:
    - Generates primary keys (max existing key + 1) when none is given
    - Keeps rows in insertion order
    - Returns copies so callers cannot mutate stored rows

    Tables must be registered with define_table() before use.
    """

    def __init__(self, schema: str = "memory"):
        """Initialize memory store with empty state."""
        super().__init__()
        self.schema = schema
        self._tables: dict[str, TableInfo] = {}
        self._data: dict[str, list[dict[str, Any]]] = {}

    def define_table(self, table_info: TableInfo) -> None:
        """
        Register table metadata (no database to introspect from).

        Args:
            table_info: Table metadata
        """
        self._tables[table_info.name] = table_info
        self._data.setdefault(table_info.name, [])
        self.clear_cache()

    def get_tables(self) -> list[TableInfo]:
        return list(self._tables.values())

    def get_table_info(self, table: str) -> TableInfo:
        if table not in self._tables:
            raise TableNotFoundError(table, self.schema)
        return self._tables[table]

    def find_all(
        self,
        table: str,
        conditions: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        table_info = self.get_table_info(table)
        pk = table_info.pk_column
        rows = self._filter(table, conditions)
        if pk is not None:
            rows = sorted(rows, key=lambda row: (row.get(pk) is None, row.get(pk)))
        if limit is not None:
            rows = rows[:limit]
        return [Record(table=table, attributes=copy.deepcopy(row), pk_column=pk) for row in rows]

    def select_all(
        self, table: str, conditions: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        self.get_table_info(table)
        return [copy.deepcopy(row) for row in self._filter(table, conditions)]

    def delete_all(self, table: str) -> int:
        self.get_table_info(table)
        count = len(self._data[table])
        self._data[table] = []
        return count

    def insert(self, table: str, attributes: dict[str, Any]) -> Record:
        table_info = self.get_table_info(table)
        pk = table_info.pk_column

        row = {col.name: None for col in table_info.columns}
        row.update(copy.deepcopy(attributes))

        if pk is not None and row.get(pk) is None:
            existing = [r[pk] for r in self._data[table] if isinstance(r.get(pk), int)]
            row[pk] = max(existing, default=0) + 1

        self._data[table].append(row)
        return Record(table=table, attributes=copy.deepcopy(row), pk_column=pk)

    def _filter(self, table: str, conditions: dict[str, Any] | None) -> list[dict[str, Any]]:
        rows = self._data[table]
        if not conditions:
            return list(rows)
        return [
            row
            for row in rows
            if all(row.get(col) == value for col, value in conditions.items())
        ]
