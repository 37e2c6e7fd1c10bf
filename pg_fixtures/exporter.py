"""Fixture export by recursive traversal of include specifications."""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Union

from pg_fixtures.exceptions import InvalidSpecificationError
from pg_fixtures.fixture_set import FixtureSet
from pg_fixtures.includes import FollowThen, IncludeSequence, Leaf, parse_includes
from pg_fixtures.models import Record
from pg_fixtures.naming import join_fixture_name

logger = logging.getLogger(__name__)

Resolved = Union[Record, Sequence[Record], None]
AssociationResolver = Callable[[Record, str], Resolved]


def as_records(value: Resolved) -> list[Record]:
    """Coerce an association result to a list (None becomes empty)."""
    if value is None:
        return []
    if isinstance(value, Record):
        return [value]
    return list(value)


class FixtureExporter:
    """
    Collect root records and everything reachable through their includes.

    The exporter knows nothing about databases. It only calls
    ``resolve_association(record, name)``, which a store provides (see
    :meth:`pg_fixtures.backends.base.RecordStore.resolve_association`).

    Example:
        exporter = FixtureExporter(store.resolve_association)
        fixtures = exporter.export(authors, {"posts": "comments"})
    """

    def __init__(self, resolve_association: AssociationResolver):
        """
        Initialize exporter.

        Args:
            resolve_association: Callable returning the record, records or
                None reached from a record through a named association
        """
        self.resolve_association = resolve_association

    def export(self, roots: Iterable[Record], includes: Any = None) -> FixtureSet:
        """
        Build a FixtureSet from root records and an include spec.

        Args:
            roots: Records to export
            includes: Include spec (plain value or IncludeSpec), optional

        Returns:
            FixtureSet with roots and all included records

        Raises:
            InvalidSpecificationError: If includes has an unknown shape
        """
        fixtures = FixtureSet()
        spec = parse_includes(includes) if includes is not None else None

        for record in roots:
            fixtures.add(record)
            if spec is not None:
                self.traverse(record, spec, fixtures)

        logger.debug(f"Exported {len(fixtures)} records from tables {fixtures.tables}")
        return fixtures

    def traverse(self, target: Resolved, spec: Any, fixtures: FixtureSet) -> None:
        """
        Add records reached from target through spec to fixtures.

        Args:
            target: Starting record, collection of records, or None
            spec: Include spec (plain value or IncludeSpec)
            fixtures: FixtureSet to populate

        Raises:
            InvalidSpecificationError: If spec has an unknown shape
        """
        if target is None:
            return

        spec = parse_includes(spec)

        if isinstance(spec, IncludeSequence):
            for child in spec.specs:
                self.traverse(target, child, fixtures)
        elif isinstance(spec, FollowThen):
            for record in as_records(target):
                resolved = self.resolve_association(record, spec.name)
                for child in as_records(resolved):
                    fixtures.add(child)
                self.traverse(resolved, spec.nested, fixtures)
        elif isinstance(spec, Leaf):
            for record in as_records(target):
                for child in as_records(self.resolve_association(record, spec.name)):
                    fixtures.add(child)
        else:
            raise InvalidSpecificationError(spec)

    def export_join_table(
        self, join_table_name: str, rows: Iterable[dict[str, Any]]
    ) -> dict[str, dict[str, Any]]:
        """
        Name raw join table rows in row order.

        Args:
            join_table_name: Join table name (for logging)
            rows: Raw rows, e.g. from RecordStore.select_all()

        Returns:
            {"join_00000": row, "join_00001": row, ...}
        """
        named = {join_fixture_name(i): dict(row) for i, row in enumerate(rows)}
        logger.debug(f"Exported {len(named)} rows from join table '{join_table_name}'")
        return named
