"""CLI commands for pg-fixtures."""

import logging
import sys

import click
import psycopg
import yaml

from pg_fixtures.backends.base import RecordStore
from pg_fixtures.backends.postgres import PostgresStore
from pg_fixtures.config import Config
from pg_fixtures.exceptions import PgFixturesError
from pg_fixtures.table_fixtures import TableFixtures


def _load_config(config_path: str | None) -> Config:
    if config_path:
        return Config.from_toml(config_path)
    try:
        return Config.find_and_load()
    except FileNotFoundError:
        return Config()


def _open_store(config: Config) -> RecordStore:
    conn = psycopg.connect(config.database.url, autocommit=False)
    click.get_current_context().call_on_close(conn.close)
    return PostgresStore(conn, schema=config.database.schema_name)


def _parse_yaml(value: str, param_hint: str):
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError as e:
        raise click.BadParameter(f"not valid YAML: {e}", param_hint=param_hint) from e


def _parse_include(value: str | None):
    return _parse_yaml(value, "--include") if value else None


def _parse_where(values: tuple[str, ...]) -> dict:
    conditions = {}
    for item in values:
        column, sep, raw = item.partition("=")
        if not sep or not column:
            raise click.BadParameter(f"expected COLUMN=VALUE, got '{item}'", param_hint="--where")
        conditions[column] = _parse_yaml(raw, "--where") if raw else None
    return conditions


@click.group()
@click.version_option(package_name="pg-fixtures")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to pg-fixtures.toml")
@click.option("--database-url", help="PostgreSQL connection URL (overrides config)")
@click.option("--schema", help="Schema name (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Log every row and file")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    database_url: str | None,
    schema: str | None,
    verbose: bool,
) -> None:
    """pg-fixtures - dump, load and export PostgreSQL tables as YAML fixtures."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = _load_config(config_path)
    if database_url:
        config.database.url = database_url
    if schema:
        config.database.schema_name = schema
    ctx.obj = config


def _table(ctx: click.Context, table: str) -> TableFixtures:
    config: Config = ctx.obj
    return TableFixtures(_open_store(config), table, config)


@cli.command()
@click.argument("table")
@click.option("--path", type=click.Path(dir_okay=False), help="Output file (default: db/TABLE.yml)")
@click.option("--limit", type=int, help="Maximum number of rows")
@click.pass_context
def dump(ctx: click.Context, table: str, path: str | None, limit: int | None) -> None:
    """Write all rows of TABLE to a YAML file."""
    try:
        written = _table(ctx, table).dump_to_file(path, limit=limit)
    except PgFixturesError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(str(written))


@cli.command()
@click.argument("table")
@click.option("--path", type=click.Path(dir_okay=False), help="Input file (default: db/TABLE.yml)")
@click.pass_context
def load(ctx: click.Context, table: str, path: str | None) -> None:
    """Replace all rows of TABLE with the rows in a YAML file."""
    try:
        count = _table(ctx, table).load_from_file(path)
    except PgFixturesError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Loaded {count} rows into {table}")


@cli.command()
@click.argument("table")
@click.option("--limit", type=int, help="Maximum number of root rows")
@click.option("--include", "include", help="Associations to export, as YAML (e.g. '{posts: comments}')")
@click.option("--where", "where", multiple=True, help="Root row filter COLUMN=VALUE (repeatable)")
@click.option("--keep-current", is_flag=True, help="Merge into existing fixture files")
@click.pass_context
def fixture(
    ctx: click.Context,
    table: str,
    limit: int | None,
    include: str | None,
    where: tuple[str, ...],
    keep_current: bool,
) -> None:
    """Write test fixtures for TABLE and its included associations."""
    include_spec = _parse_include(include)
    conditions = _parse_where(where)

    try:
        written = _table(ctx, table).to_fixture(
            limit=limit,
            include=include_spec,
            conditions=conditions or None,
            keep_current_fixtures=keep_current,
        )
    except PgFixturesError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for path in written.values():
        click.echo(str(path))


@cli.command()
@click.argument("table")
@click.pass_context
def habtm(ctx: click.Context, table: str) -> None:
    """Write fixtures for the join tables of TABLE."""
    try:
        written = _table(ctx, table).habtm_to_fixture()
    except PgFixturesError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for path in written.values():
        click.echo(str(path))


@cli.command()
@click.argument("table")
@click.pass_context
def skeleton(ctx: click.Context, table: str) -> None:
    """Write a blank fixture file listing the columns of TABLE."""
    try:
        written = _table(ctx, table).to_skeleton()
    except PgFixturesError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(str(written))


if __name__ == "__main__":
    cli()
