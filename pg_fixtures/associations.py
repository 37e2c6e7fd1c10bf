"""
Association reflection from foreign keys.

Associations are derived purely from schema metadata:

- belongs_to:  FK column on the record's table    (posts.author_id -> "author")
- has_many:    FK on a child table to this table   (authors -> "posts")
- has_one:     same, but the FK column is unique   (authors -> "profile")
- has_and_belongs_to_many: through a join table    (authors -> "books")
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import inflection

from pg_fixtures.models import ForeignKeyInfo, Record, TableInfo

if TYPE_CHECKING:
    from pg_fixtures.backends.base import RecordStore

BELONGS_TO = "belongs_to"
HAS_MANY = "has_many"
HAS_ONE = "has_one"
HAS_AND_BELONGS_TO_MANY = "has_and_belongs_to_many"


@dataclass
class Association:
    """
    A named association from one table to another.

    Attributes:
        name: Association name used in include specs
        macro: belongs_to, has_many, has_one or has_and_belongs_to_many
        table: Owning table
        target_table: Table of the associated records
        foreign_key: FK column (on the owner for belongs_to, on the child
            or join table otherwise)
        primary_key: Column the FK points at
        join_table: Join table name (habtm only)
        association_foreign_key: Join table FK to the target (habtm only)
        target_key: Target column referenced by association_foreign_key
    """

    name: str
    macro: str
    table: str
    target_table: str
    foreign_key: str
    primary_key: str
    join_table: str | None = None
    association_foreign_key: str | None = None
    target_key: str | None = None

    @property
    def is_collection(self) -> bool:
        return self.macro in (HAS_MANY, HAS_AND_BELONGS_TO_MANY)

    def resolve(self, store: "RecordStore", record: Record) -> Record | list[Record] | None:
        """
        Load the associated record(s) for record.

        Returns:
            Record or None for singular associations, list for collections
        """
        if self.macro == BELONGS_TO:
            value = record.get(self.foreign_key)
            if value is None:
                return None
            matches = store.find_all(self.target_table, {self.primary_key: value}, limit=1)
            return matches[0] if matches else None

        key = record.get(self.primary_key)
        if key is None:
            return [] if self.is_collection else None

        if self.macro == HAS_MANY:
            return store.find_by(self.target_table, self.foreign_key, key)

        if self.macro == HAS_ONE:
            matches = store.find_all(self.target_table, {self.foreign_key: key}, limit=1)
            return matches[0] if matches else None

        targets = []
        for row in store.select_all(self.join_table, {self.foreign_key: key}):
            target_id = row.get(self.association_foreign_key)
            if target_id is None:
                continue
            targets.extend(
                store.find_all(self.target_table, {self.target_key: target_id}, limit=1)
            )
        return targets


def association_stem(column: str) -> str:
    """
    Association name for a FK column.

    Examples:
        >>> association_stem("author_id")
        'author'
        >>> association_stem("fk_manufacturer")
        'manufacturer'
    """
    if column.startswith("fk_") and len(column) > 3:
        return column[3:]
    if column.endswith("_id") and len(column) > 3:
        return column[:-3]
    return column


def reflect_associations(table: TableInfo, tables: list[TableInfo]) -> list[Association]:
    """
    Reflect all associations of a table.

    Args:
        table: Table to reflect
        tables: Every table in the schema (for reverse FKs and join tables)

    Returns:
        Associations in a stable order: belongs_to, has_many/has_one, habtm
    """
    associations: list[Association] = []

    for fk in table.foreign_keys:
        associations.append(
            Association(
                name=association_stem(fk.column),
                macro=BELONGS_TO,
                table=table.name,
                target_table=fk.referenced_table,
                foreign_key=fk.column,
                primary_key=fk.referenced_column,
            )
        )

    for child in tables:
        incoming = [fk for fk in child.foreign_keys if fk.referenced_table == table.name]
        if not incoming:
            continue
        if child.is_join_table:
            associations.extend(_reflect_habtm(table, child, incoming))
            continue
        for fk in incoming:
            associations.append(_reflect_child(table, child, fk, len(incoming) > 1))

    return associations


def _reflect_child(
    table: TableInfo, child: TableInfo, fk: ForeignKeyInfo, ambiguous: bool
) -> Association:
    column = child.get_column(fk.column)
    unique = column is not None and (column.is_unique or column.is_primary_key)
    if unique:
        name = inflection.singularize(child.name)
    else:
        name = child.name
    if ambiguous:
        name = f"{name}_by_{association_stem(fk.column)}"
    return Association(
        name=name,
        macro=HAS_ONE if unique else HAS_MANY,
        table=table.name,
        target_table=child.name,
        foreign_key=fk.column,
        primary_key=fk.referenced_column,
    )


def _reflect_habtm(
    table: TableInfo, join: TableInfo, incoming: list[ForeignKeyInfo]
) -> list[Association]:
    associations = []
    for own_fk in incoming:
        for other_fk in join.foreign_keys:
            if other_fk.column == own_fk.column:
                continue
            if other_fk.referenced_table == table.name:
                name = inflection.pluralize(association_stem(other_fk.column))
            else:
                name = other_fk.referenced_table
            associations.append(
                Association(
                    name=name,
                    macro=HAS_AND_BELONGS_TO_MANY,
                    table=table.name,
                    target_table=other_fk.referenced_table,
                    foreign_key=own_fk.column,
                    primary_key=own_fk.referenced_column,
                    join_table=join.name,
                    association_foreign_key=other_fk.column,
                    target_key=other_fk.referenced_column,
                )
            )
    return associations
