"""Base class for record stores."""

from abc import ABC, abstractmethod
from typing import Any

from pg_fixtures.associations import Association, reflect_associations
from pg_fixtures.exceptions import UnknownAssociationError
from pg_fixtures.models import Record, TableInfo


class RecordStore(ABC):
    """
    Storage layer the fixture helpers read from and write to.

    Subclasses provide schema metadata and row access. Association
    reflection and resolution are built on top of those primitives.
    """

    #: Whether reset_pk_sequence() does anything for this store
    supports_pk_sequence_reset: bool = False

    def __init__(self):
        self._association_cache: dict[str, list[Association]] = {}

    @abstractmethod
    def get_tables(self) -> list[TableInfo]:
        """Get metadata for every table."""
        pass

    @abstractmethod
    def get_table_info(self, table: str) -> TableInfo:
        """
        Get metadata for one table.

        Raises:
            TableNotFoundError: If table does not exist
        """
        pass

    @abstractmethod
    def find_all(
        self,
        table: str,
        conditions: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """
        Find records ordered by primary key.

        Args:
            table: Table name
            conditions: Column equality filters (None values match NULL)
            limit: Maximum number of records

        Returns:
            List of records
        """
        pass

    @abstractmethod
    def select_all(
        self, table: str, conditions: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Raw rows of a table in storage order (used for join tables)."""
        pass

    @abstractmethod
    def delete_all(self, table: str) -> int:
        """Delete every row of a table and return the number deleted."""
        pass

    @abstractmethod
    def insert(self, table: str, attributes: dict[str, Any]) -> Record:
        """
        Insert one row, keeping any primary key value supplied.

        Returns:
            The stored record including generated columns
        """
        pass

    def reset_pk_sequence(self, table: str) -> None:
        """Align the table's key generator with the current maximum key."""
        raise NotImplementedError(
            f"{type(self).__name__} does not support primary key sequence reset"
        )

    def find_by(self, table: str, column: str, value: Any) -> list[Record]:
        """Find records where column equals value."""
        return self.find_all(table, {column: value})

    def associations(self, table: str) -> list[Association]:
        """Reflected associations of a table (cached)."""
        if table not in self._association_cache:
            table_info = self.get_table_info(table)
            self._association_cache[table] = reflect_associations(
                table_info, self.get_tables()
            )
        return self._association_cache[table]

    def get_association(self, table: str, name: str) -> Association:
        """
        Look up an association by name.

        Raises:
            UnknownAssociationError: If no association has that name
        """
        associations = self.associations(table)
        for association in associations:
            if association.name == name:
                return association
        raise UnknownAssociationError(table, name, [a.name for a in associations])

    def resolve_association(
        self, record: Record, name: str
    ) -> Record | list[Record] | None:
        """Load the record(s) reached from record through association name."""
        return self.get_association(record.table, name).resolve(self, record)

    def clear_cache(self) -> None:
        """Clear cached association metadata."""
        self._association_cache.clear()
