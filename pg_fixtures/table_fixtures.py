"""TableFixtures API for dumping, loading and exporting one table."""

import logging
import re
from pathlib import Path
from typing import Any

from pg_fixtures.associations import HAS_AND_BELONGS_TO_MANY
from pg_fixtures.backends.base import RecordStore
from pg_fixtures.config import DEFAULT_CONFIG, Config
from pg_fixtures.exceptions import FixtureFormatError
from pg_fixtures.exporter import FixtureExporter
from pg_fixtures.fixture_io import (
    dump_yaml,
    merge_fixtures,
    protect_template,
    read_fixture_file,
    write_file,
)

logger = logging.getLogger(__name__)

_QUOTED_DEFAULT = re.compile(r"^'(?P<value>(?:[^']|'')*)'(?:::[\w\s\".\[\]]+)?$")
_NUMERIC_DEFAULT = re.compile(r"^\(?(?P<value>-?\d+(?:\.\d+)?)\)?(?:::[\w\s]+)?$")


def parse_default(expression: str | None) -> Any:
    """
    Turn a column default expression into a fixture value.

    Literal strings, numbers and booleans are returned as Python values;
    anything computed (nextval(), now(), ...) becomes None.

    Examples:
        >>> parse_default("'draft'::text")
        'draft'
        >>> parse_default("0")
        0
        >>> parse_default("now()") is None
        True
    """
    if expression is None:
        return None
    expression = expression.strip()

    match = _QUOTED_DEFAULT.match(expression)
    if match:
        return match.group("value").replace("''", "'")

    if expression.lower() in ("true", "false"):
        return expression.lower() == "true"

    match = _NUMERIC_DEFAULT.match(expression)
    if match:
        value = match.group("value")
        return float(value) if "." in value else int(value)

    return None


class TableFixtures:
    """
    Read and write YAML files for a single table.

    Example:
        store = PostgresStore(conn, schema="public")
        authors = TableFixtures(store, "authors", config)

        authors.dump_to_file()                       # db/authors.yml
        authors.load_from_file()                     # replaces all rows
        authors.to_fixture(limit=10, include={"posts": "comments"})
        authors.to_skeleton()                        # test/fixtures/authors.yml
    """

    def __init__(self, store: RecordStore, table: str, config: Config = DEFAULT_CONFIG):
        """
        Initialize TableFixtures.

        Args:
            store: Record store holding the table
            table: Table name
            config: Paths and table conventions

        Raises:
            TableNotFoundError: If table doesn't exist
        """
        self.store = store
        self.table = table
        self.config = config
        self.table_info = store.get_table_info(table)
        self.exporter = FixtureExporter(store.resolve_association)

    def data_path(self) -> Path:
        """Default dump file: {data_dir}/{table}.yml."""
        return self.config.get_data_dir() / f"{self.table}.yml"

    def fixture_path(self, table: str | None = None) -> Path:
        """Fixture file for a table: {fixtures_dir}/{table}.yml."""
        return self.config.get_fixtures_dir() / f"{table or self.table}.yml"

    def dump_to_file(self, path: str | Path | None = None, limit: int | None = None) -> Path:
        """
        Write the table's rows to a YAML file.

        Writes all rows by default, but can be limited. Overwrites any
        existing file.

        Args:
            path: Target file (default: data_path())
            limit: Maximum number of rows

        Returns:
            Path written
        """
        target = self.config.resolve_path(path) if path else self.data_path()
        records = self.store.find_all(self.table, limit=limit)
        logger.info(f"Dumping {len(records)} rows from '{self.table}' to {target}")
        text = dump_yaml([r.attributes for r in records], sort_keys=False)
        return write_file(target, protect_template(text))

    def load_from_file(
        self, path: str | Path | None = None, context: dict[str, Any] | None = None
    ) -> int:
        """
        Delete existing rows and load fresh ones from a YAML file.

        Template tags are rendered before parsing. Primary keys and the
        inheritance column are written as found in the file. Files written
        by dump_to_file() wrap values containing ``{{``, ``{%`` or ``{#`` in
        a raw block; hand-written files must do the same.

        Rows are deleted before the file is read, and nothing is rolled
        back: if reading or parsing fails the table is left empty, and if an
        insert fails the rows before it stay loaded.

        Args:
            path: Source file (default: data_path())
            context: Extra template variables

        Returns:
            Number of rows loaded

        Raises:
            FixtureFormatError: If the file is not a list or mapping of rows
        """
        source = self.config.resolve_path(path) if path else self.data_path()

        deleted = self.store.delete_all(self.table)
        logger.info(f"Deleted {deleted} rows from '{self.table}'")
        self._reset_pk_sequence()

        rows = self._rows_from(read_fixture_file(source, context), source)

        inheritance_column = self.config.tables.inheritance_column
        subtypes: set[str] = set()
        for row in rows:
            logger.debug(f"Loading row into '{self.table}':\n{dump_yaml(row)}")
            attributes = self._attributes_for_insert(row)
            if attributes.get(inheritance_column) is not None:
                subtypes.add(str(attributes[inheritance_column]))
            self.store.insert(self.table, attributes)

        self._reset_pk_sequence()

        if subtypes:
            logger.info(
                f"Loaded {len(rows)} rows into '{self.table}' from {source} "
                f"({inheritance_column}: {', '.join(sorted(subtypes))})"
            )
        else:
            logger.info(f"Loaded {len(rows)} rows into '{self.table}' from {source}")
        return len(rows)

    def to_fixture(
        self,
        limit: int | None = None,
        include: Any = None,
        conditions: dict[str, Any] | None = None,
        keep_current_fixtures: bool = False,
    ) -> dict[str, Path]:
        """
        Write fixture files that can be loaded as test data.

        Uses existing data in the database. Every table reached through
        include gets its own {fixtures_dir}/{table}.yml, followed by the
        join tables of the table's many-to-many associations.

        Args:
            limit: Maximum number of root rows
            include: Associations to export with each root (see includes.py)
            conditions: Column equality filters for root rows
            keep_current_fixtures: Merge into existing files instead of
                replacing them (new records win)

        Returns:
            Table name -> path written

        Raises:
            InvalidSpecificationError: If include has an unknown shape
            UnknownAssociationError: If include names a missing association
        """
        roots = self.store.find_all(self.table, conditions=conditions, limit=limit)
        fixtures = self.exporter.export(roots, include)

        written: dict[str, Path] = {}
        for table_name, records in fixtures.items():
            path = self.fixture_path(table_name)

            if keep_current_fixtures and path.exists():
                existing = read_fixture_file(path)
                if existing is not None and not isinstance(existing, dict):
                    raise FixtureFormatError(str(path), type(existing).__name__)
                records = merge_fixtures(existing, records)

            written[table_name] = write_file(
                path, protect_template(dump_yaml(records, sort_keys=True))
            )

        written.update(self.habtm_to_fixture())
        return written

    def habtm_to_fixture(self) -> dict[str, Path]:
        """
        Write the join tables of many-to-many associations.

        Returns:
            Join table name -> path written
        """
        written: dict[str, Path] = {}
        for association in self.store.associations(self.table):
            if association.macro != HAS_AND_BELONGS_TO_MANY:
                continue
            join_table = association.join_table
            if join_table in written:
                continue

            rows = self.store.select_all(join_table)
            named = self.exporter.export_join_table(join_table, rows)
            written[join_table] = write_file(
                self.fixture_path(join_table), protect_template(dump_yaml(named, sort_keys=True))
            )
        return written

    def to_skeleton(self) -> Path:
        """
        Write a basic fixture file listing the table's columns.

        You can use it as a starting point for your own fixtures:

            record_1:
              name:
              rating: 0
            record_2:
              name:
              rating: 0

        Returns:
            Path written
        """
        blank = {
            col.name: parse_default(col.default_value)
            for col in self.table_info.columns
            if not col.is_primary_key
        }
        records = {"record_1": dict(blank), "record_2": dict(blank)}
        return write_file(self.fixture_path(), dump_yaml(records, sort_keys=False))

    def _reset_pk_sequence(self) -> None:
        if self.store.supports_pk_sequence_reset:
            self.store.reset_pk_sequence(self.table)

    def _rows_from(self, data: Any, source: Path) -> list[dict[str, Any]]:
        if data is None:
            return []
        if isinstance(data, dict):
            rows = list(data.values())
        elif isinstance(data, list):
            rows = data
        else:
            raise FixtureFormatError(str(source), type(data).__name__)

        for row in rows:
            if not isinstance(row, dict):
                raise FixtureFormatError(str(source), f"a row of type {type(row).__name__}")
        return rows

    def _attributes_for_insert(self, row: dict[str, Any]) -> dict[str, Any]:
        columns = set(self.table_info.column_names)

        unknown = sorted(str(key) for key in row if key not in columns)
        if unknown:
            logger.warning(
                f"Ignoring keys not in table '{self.table}': {', '.join(unknown)}"
            )

        attributes = {key: value for key, value in row.items() if key in columns}

        # Let the store generate a key for rows written without one
        pk = self.table_info.pk_column
        if pk is not None and attributes.get(pk) is None:
            attributes.pop(pk, None)

        return attributes
