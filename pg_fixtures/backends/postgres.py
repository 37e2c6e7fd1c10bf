"""PostgreSQL backend - reads and writes rows through psycopg."""

from typing import Any

from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg.types.json import Json, Jsonb

from pg_fixtures.backends.base import RecordStore
from pg_fixtures.introspection import SchemaIntrospector
from pg_fixtures.models import ColumnInfo, Record, TableInfo


def adapt_value(column: ColumnInfo | None, value: Any) -> Any:
    """
    Wrap a value read from YAML so psycopg sends it as the column's type.

    json and jsonb values come back from YAML as plain dicts, lists and
    scalars; psycopg would reject the dicts and send the lists as arrays.
    """
    if value is None or column is None:
        return value
    if column.pg_type == "jsonb":
        return Jsonb(value)
    if column.pg_type == "json":
        return Json(value)
    return value


class PostgresStore(RecordStore):
    """
    Record store backed by a PostgreSQL schema.

    Table metadata comes from information_schema (see SchemaIntrospector).
    Every write commits immediately, so a multi-step operation is not
    atomic as a whole.
    """

    supports_pk_sequence_reset = True

    def __init__(self, conn: Connection, schema: str = "public"):
        """
        Initialize store.

        Args:
            conn: PostgreSQL connection
            schema: Schema name for qualified table names

        Raises:
            SchemaNotFoundError: If schema doesn't exist
        """
        super().__init__()
        self.conn = conn
        self.schema = schema
        self.introspector = SchemaIntrospector(conn, schema)

    def get_tables(self) -> list[TableInfo]:
        return self.introspector.get_tables()

    def get_table_info(self, table: str) -> TableInfo:
        return self.introspector.get_table_info(table)

    def find_all(
        self,
        table: str,
        conditions: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        table_info = self.get_table_info(table)
        pk = table_info.pk_column

        query = sql.SQL("SELECT * FROM {table}").format(table=self._qualified(table))
        where, params = self._where(conditions)
        query += where
        if pk is not None:
            query += sql.SQL(" ORDER BY {pk}").format(pk=sql.Identifier(pk))
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(limit)

        with self.conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            rows = cur.fetchall()

        return [Record(table=table, attributes=row, pk_column=pk) for row in rows]

    def select_all(
        self, table: str, conditions: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT * FROM {table}").format(table=self._qualified(table))
        where, params = self._where(conditions)
        query += where

        with self.conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def delete_all(self, table: str) -> int:
        self.get_table_info(table)
        with self.conn.cursor() as cur:
            cur.execute(sql.SQL("DELETE FROM {table}").format(table=self._qualified(table)))
            count = cur.rowcount
        self.conn.commit()
        return count

    def insert(self, table: str, attributes: dict[str, Any]) -> Record:
        table_info = self.get_table_info(table)
        pk = table_info.pk_column
        columns = list(attributes)

        if columns:
            overriding = sql.SQL("")
            pk_info = table_info.get_column(pk) if pk else None
            if pk_info is not None and pk_info.is_identity and attributes.get(pk) is not None:
                # Needed to write explicit keys into GENERATED ALWAYS columns
                overriding = sql.SQL(" OVERRIDING SYSTEM VALUE")
            query = sql.SQL(
                "INSERT INTO {table} ({columns}){overriding} VALUES ({values}) RETURNING *"
            ).format(
                table=self._qualified(table),
                columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
                overriding=overriding,
                values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            )
        else:
            query = sql.SQL("INSERT INTO {table} DEFAULT VALUES RETURNING *").format(
                table=self._qualified(table)
            )

        with self.conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                query, [adapt_value(table_info.get_column(c), attributes[c]) for c in columns]
            )
            row = cur.fetchone()

        self.conn.commit()
        return Record(table=table, attributes=row, pk_column=pk)

    def reset_pk_sequence(self, table: str) -> None:
        """
        Point the primary key sequence at MAX(pk) so new rows don't collide.

        Tables without a sequence-backed primary key are left alone.
        """
        table_info = self.get_table_info(table)
        pk = table_info.pk_column
        if pk is None:
            return
        pk_info = table_info.get_column(pk)
        default = pk_info.default_value or ""
        if not (pk_info.is_identity or default.startswith("nextval(")):
            return

        query = sql.SQL(
            "SELECT setval(pg_get_serial_sequence(%s, %s), "
            "COALESCE(MAX({pk}), 1), MAX({pk}) IS NOT NULL) FROM {table}"
        ).format(pk=sql.Identifier(pk), table=self._qualified(table))
        qualified_name = self._qualified(table).as_string(self.conn)

        with self.conn.cursor() as cur:
            cur.execute(query, (qualified_name, pk))
        self.conn.commit()

    def clear_cache(self) -> None:
        super().clear_cache()
        self.introspector.clear_cache()

    def _qualified(self, table: str) -> sql.Identifier:
        return sql.Identifier(self.schema, table)

    def _where(self, conditions: dict[str, Any] | None) -> tuple[sql.Composable, list[Any]]:
        if not conditions:
            return sql.SQL(""), []

        clauses = []
        params: list[Any] = []
        for column, value in conditions.items():
            if value is None:
                clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
            else:
                clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(value)
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), params
