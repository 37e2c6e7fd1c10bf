"""Data models and type definitions."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ColumnInfo:
    """
    Column metadata from database introspection.

    Attributes:
        name: Column name
        pg_type: PostgreSQL data type
        is_nullable: Whether column allows NULL values
        is_primary_key: Whether column is primary key
        default_value: Database default value expression (if any)
        is_unique: Whether column has a single-column UNIQUE constraint
        is_identity: Whether column is GENERATED ... AS IDENTITY
    """

    name: str
    pg_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    default_value: str | None = None
    is_unique: bool = False
    is_identity: bool = False


@dataclass
class ForeignKeyInfo:
    """
    Foreign key relationship metadata.

    Attributes:
        column: Foreign key column name in this table
        referenced_table: Parent table being referenced
        referenced_column: Column in parent table (usually PK)
    """

    column: str
    referenced_table: str
    referenced_column: str


@dataclass
class TableInfo:
    """
    Table metadata.

    Attributes:
        name: Table name
        columns: List of column metadata
        foreign_keys: List of foreign key relationships
    """

    name: str
    columns: list[ColumnInfo]
    foreign_keys: list[ForeignKeyInfo] = field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        """Column names in ordinal order."""
        return [c.name for c in self.columns]

    @property
    def pk_column(self) -> str | None:
        """
        Get primary key column name.

        Returns:
            First primary key column name or None if no PK found
        """
        for col in self.columns:
            if col.is_primary_key:
                return col.name
        return None

    @property
    def is_join_table(self) -> bool:
        """
        Check if table is a bare many-to-many join table.

        Returns:
            True if the table has at least two foreign keys and every
            column is one of them (no identity of its own)
        """
        fk_columns = {fk.column for fk in self.foreign_keys}
        return len(fk_columns) >= 2 and set(self.column_names) == fk_columns

    def get_column(self, name: str) -> ColumnInfo | None:
        """Get column metadata by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None


@dataclass
class Record:
    """
    A single row read from a store.

    Attributes:
        table: Table the row belongs to
        attributes: Column values keyed by column name
        pk_column: Primary key column name (None for keyless tables)
    """

    table: str
    attributes: dict[str, Any]
    pk_column: str | None = "id"

    @property
    def id(self) -> Any:
        """Primary key value."""
        if self.pk_column is None:
            return None
        return self.attributes.get(self.pk_column)

    def __getitem__(self, column: str) -> Any:
        return self.attributes[column]

    def get(self, column: str, default: Any = None) -> Any:
        return self.attributes.get(column, default)
